"""Business operations for the clinic resources."""
