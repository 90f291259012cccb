"""
Tests for the Django-backed user directory
"""
from unittest.mock import patch

from django.contrib.auth.models import Group, User
from django.db import DatabaseError
from django.test import TestCase

from proxyauth.auth.directory import DjangoUserDirectory, split_full_name
from proxyauth.auth.exceptions import DirectoryError, UnknownGroup
from proxyauth.auth.orchestrator import AuthenticationOrchestrator, AuthState
from proxyauth.auth.session_cache import SessionPrincipalCache
from proxyauth.tests.base import make_config


class SplitFullNameTest(TestCase):
    def test_first_word_and_rest(self):
        self.assertEqual(split_full_name("Jane van Doe"), ("Jane", "van Doe"))
        self.assertEqual(split_full_name("Cher"), ("Cher", ""))
        self.assertEqual(split_full_name("  "), ("", ""))
        self.assertEqual(split_full_name(None), ("", ""))


class DjangoUserDirectoryTest(TestCase):
    def setUp(self):
        self.directory = DjangoUserDirectory()

    def test_lookup_missing_user_is_none(self):
        self.assertIsNone(self.directory.lookup("nobody"))

    def test_lookup_existing_user(self):
        user = User.objects.create_user(
            username="jdoe", first_name="Jane", last_name="Doe", email="jane@example.org"
        )

        account = self.directory.lookup("jdoe")

        self.assertEqual(account.username, "jdoe")
        self.assertEqual(account.full_name, "Jane Doe")
        self.assertEqual(account.email, "jane@example.org")
        self.assertEqual(account.pk, str(user.pk))
        self.assertEqual(account.handle, user)

    def test_blank_email_is_none(self):
        User.objects.create_user(username="jdoe")
        self.assertIsNone(self.directory.lookup("jdoe").email)

    def test_lookup_database_error(self):
        with patch.object(self.directory, "_get_user", side_effect=DatabaseError("gone")):
            with self.assertRaises(DirectoryError) as ctx:
                self.directory.lookup("jdoe")

        self.assertEqual(ctx.exception.operation, "lookup")

    def test_create(self):
        account = self.directory.create("jdoe")

        user = User.objects.get(username="jdoe")
        self.assertEqual(account.pk, str(user.pk))
        self.assertFalse(user.has_usable_password())

    def test_duplicate_create_raises_and_connection_stays_usable(self):
        User.objects.create_user(username="jdoe")

        with self.assertRaises(DirectoryError):
            self.directory.create("jdoe")

        self.assertIsNotNone(self.directory.lookup("jdoe"))

    def test_update_profile(self):
        User.objects.create_user(username="jdoe")

        account = self.directory.update("jdoe", {"full_name": "Jane van Doe", "email": "jane@example.org"})

        user = User.objects.get(username="jdoe")
        self.assertEqual((user.first_name, user.last_name), ("Jane", "van Doe"))
        self.assertEqual(user.email, "jane@example.org")
        self.assertEqual(account.full_name, "Jane van Doe")

    def test_update_missing_user(self):
        with self.assertRaises(DirectoryError):
            self.directory.update("nobody", {"email": "x@example.org"})

    def test_get_group(self):
        group = Group.objects.create(name="staff-group")
        self.assertEqual(self.directory.get_group("staff-group"), group)

    def test_unknown_group(self):
        with self.assertRaises(UnknownGroup) as ctx:
            self.directory.get_group("missing")
        self.assertEqual(ctx.exception.group_name, "missing")

    def test_add_membership_is_additive(self):
        user = User.objects.create_user(username="jdoe")
        existing = Group.objects.create(name="alumni-group")
        user.groups.add(existing)
        staff = Group.objects.create(name="staff-group")

        self.directory.add_membership(staff, "jdoe")
        self.directory.add_membership(staff, "jdoe")

        self.assertEqual(
            sorted(user.groups.values_list("name", flat=True)),
            ["alumni-group", "staff-group"],
        )

    def test_get_by_pk(self):
        user = User.objects.create_user(username="jdoe")
        self.assertEqual(self.directory.get_by_pk(user.pk), user)
        self.assertIsNone(self.directory.get_by_pk(user.pk + 1))


class DjangoDirectoryOrchestratorTest(TestCase):
    def setUp(self):
        self.directory = DjangoUserDirectory()
        self.orchestrator = AuthenticationOrchestrator(
            make_config(update_info="true"), self.directory, SessionPrincipalCache()
        )

    def test_unchanged_profile_is_not_rewritten_in_a_new_session(self):
        headers = {"X-Shib-Displayname": " Jane  Doe ", "X-Shib-Mail": "jane@example.org"}
        self.orchestrator.authenticate({}, "jdoe", headers)

        with patch.object(self.directory, "update", wraps=self.directory.update) as update:
            outcome = self.orchestrator.authenticate({}, "jdoe", headers)

        update.assert_not_called()
        self.assertNotIn(AuthState.INFO_UPDATED, outcome.trail)
        self.assertEqual(User.objects.get(username="jdoe").get_full_name(), "Jane Doe")
