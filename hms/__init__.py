"""Django project package for the hospital management backend."""
