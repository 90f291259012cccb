from django.apps import apps

from proxyauth.config.loader import ConfigLoadResult, load_config_file, parse_config
from proxyauth.config.model import AuthConfig


def get_auth_config() -> AuthConfig:
    """Return the configuration loaded once by the app registry."""
    return apps.get_app_config("proxyauth").auth_config


__all__ = [
    'AuthConfig',
    'ConfigLoadResult',
    'get_auth_config',
    'load_config_file',
    'parse_config',
]
