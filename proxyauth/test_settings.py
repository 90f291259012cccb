"""
Test settings for proxyauth
Uses in-memory SQLite and an inline configuration instead of the YAML file
"""
import os

os.environ.setdefault('TESTING', 'True')

from proxyauth.settings import *  # noqa: E402,F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',  # Use in-memory database for speed
    }
}

# Simplify password hashers for faster tests
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

SESSION_COOKIE_SECURE = False

# Tests configure proxyauth explicitly
PROXYAUTH_CONFIG_FILE = None
PROXYAUTH = {
    'create.users': 'true',
    'update.info': 'true',
    'update.roles': 'false',
    'default.roles': 'users',
    'header.fullname': 'X-Shib-Displayname',
    'header.email': 'X-Shib-Mail',
    'header.dynamicroles.attributenames': 'X-Shib-Entitlement',
    'header.dynamicroles.attributeValue.staff': 'confluence-users, staff-group',
    'header.dynamicroles.attributeValue.alumni': 'alumni-group',
}
