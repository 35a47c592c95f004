import pytest
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Send every blob write to a throwaway directory."""
    settings.MEDIA_ROOT = tmp_path / 'public'
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    return settings.MEDIA_ROOT


@pytest.fixture
def client():
    return APIClient()
