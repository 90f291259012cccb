"""
Base test classes and fakes for proxyauth tests.
"""
from django.test import TestCase
from unittest.mock import patch
import logging

from proxyauth.auth.directory import DirectoryAccount
from proxyauth.auth.exceptions import DirectoryError, UnknownGroup
from proxyauth.config.loader import parse_config

# Disable logging during tests to reduce noise
logging.disable(logging.CRITICAL)


BASE_PROPERTIES = {
    'create.users': 'true',
    'update.info': 'false',
    'update.roles': 'false',
    'header.fullname': 'X-Shib-Displayname',
    'header.email': 'X-Shib-Mail',
    'header.dynamicroles.attributenames': 'X-Shib-Entitlement',
    'header.dynamicroles.attributeValue.staff': 'confluence-users, staff-group',
    'header.dynamicroles.attributeValue.alumni': 'alumni-group',
}


def make_config(**overrides):
    """Build an AuthConfig from BASE_PROPERTIES; keyword keys use '_' for '.'."""
    properties = dict(BASE_PROPERTIES)
    for key, value in overrides.items():
        properties[key.replace('_', '.')] = value
    return parse_config(properties)


class FakeDirectory:
    """
    In-memory UserDirectory that records every call.

    ``failures`` maps an operation name to the exception it raises.
    ``race_on_create`` stores the account and then fails, like a concurrent
    request winning the insert.
    """

    def __init__(self, groups=(), failures=None, race_on_create=False):
        self.users = {}
        self.groups = set(groups)
        self.memberships = {}
        self.failures = dict(failures or {})
        self.race_on_create = race_on_create
        self.calls = []

    def add_user(self, username, full_name="", email=None, groups=()):
        self.users[username] = {'full_name': full_name, 'email': email}
        self.memberships[username] = set(groups)

    def calls_to(self, operation):
        return [args for name, args in self.calls if name == operation]

    def _record(self, operation, *args):
        self.calls.append((operation, args))
        if operation in self.failures:
            raise self.failures[operation]

    def _account(self, username):
        data = self.users[username]
        return DirectoryAccount(
            username=username,
            full_name=data['full_name'],
            email=data['email'],
            pk=username,
        )

    def lookup(self, username):
        self._record('lookup', username)
        if username not in self.users:
            return None
        return self._account(username)

    def create(self, username):
        if self.race_on_create:
            self.add_user(username)
            self.calls.append(('create', (username,)))
            raise DirectoryError('create', username, 'duplicate key')
        self._record('create', username)
        self.add_user(username)
        return self._account(username)

    def update(self, username, fields):
        self._record('update', username, dict(fields))
        self.users[username].update(fields)
        return self._account(username)

    def get_group(self, name):
        self._record('get_group', name)
        if name not in self.groups:
            raise UnknownGroup(name)
        return name

    def add_membership(self, group, username):
        self._record('add_membership', group, username)
        self.memberships.setdefault(username, set()).add(group)


class ConfiguredTestCase(TestCase):
    """TestCase that swaps the process-wide proxyauth configuration."""

    def use_config(self, config):
        patcher = patch('proxyauth.middleware.proxy_auth.get_auth_config', return_value=config)
        patcher.start()
        self.addCleanup(patcher.stop)
        return config


__all__ = [
    'BASE_PROPERTIES',
    'ConfiguredTestCase',
    'FakeDirectory',
    'make_config',
]
