"""
User directory access for proxy authentication.

The orchestrator only talks to the UserDirectory protocol. DjangoUserDirectory
is the implementation backed by django.contrib.auth's user and group models;
it reports failures as DirectoryError / UnknownGroup instead of leaking
database exceptions.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.db import DatabaseError, transaction

from proxyauth.auth.exceptions import DirectoryError, UnknownGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryAccount:
    """Snapshot of a directory account as seen by the orchestrator."""
    username: str
    full_name: str = ""
    email: Optional[str] = None
    pk: Any = None
    handle: Any = None


class UserDirectory(Protocol):
    def lookup(self, username: str) -> Optional[DirectoryAccount]: ...

    def create(self, username: str) -> DirectoryAccount: ...

    def update(self, username: str, fields: Dict[str, str]) -> DirectoryAccount: ...

    def get_group(self, name: str) -> Any: ...

    def add_membership(self, group: Any, username: str) -> None: ...


def split_full_name(full_name: str):
    """Split a display name into first and last name (first word / the rest)."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


class DjangoUserDirectory:
    """UserDirectory backed by the configured Django user model and Group."""

    def __init__(self, user_model=None):
        self.user_model = user_model or get_user_model()

    def _account(self, user) -> DirectoryAccount:
        return DirectoryAccount(
            username=user.get_username(),
            full_name=user.get_full_name(),
            email=user.email or None,
            pk=user._meta.pk.value_to_string(user),
            handle=user,
        )

    def _get_user(self, username: str):
        return self.user_model._default_manager.get(
            **{self.user_model.USERNAME_FIELD: username}
        )

    def lookup(self, username: str) -> Optional[DirectoryAccount]:
        logger.debug(f"Getting user {username}")
        try:
            user = self._get_user(username)
        except self.user_model.DoesNotExist:
            logger.debug(f"No user account exists for {username}")
            return None
        except DatabaseError as e:
            raise DirectoryError("lookup", username, e) from e
        return self._account(user)

    def get_by_pk(self, pk):
        """Load the user for a cached principal, or None if it is gone."""
        try:
            return self.user_model._default_manager.get(pk=pk)
        except self.user_model.DoesNotExist:
            return None
        except DatabaseError as e:
            raise DirectoryError("lookup", pk, e) from e

    def create(self, username: str) -> DirectoryAccount:
        try:
            # Savepoint so a failed insert leaves the connection usable for the retry lookup
            with transaction.atomic():
                user = self.user_model._default_manager.create_user(
                    **{self.user_model.USERNAME_FIELD: username}
                )
        except DatabaseError as e:
            raise DirectoryError("create", username, e) from e
        return self._account(user)

    def update(self, username: str, fields: Dict[str, str]) -> DirectoryAccount:
        try:
            user = self._get_user(username)
        except self.user_model.DoesNotExist as e:
            raise DirectoryError("update", username, e) from e
        except DatabaseError as e:
            raise DirectoryError("update", username, e) from e

        update_fields = []
        if "full_name" in fields:
            user.first_name, user.last_name = split_full_name(fields["full_name"])
            update_fields.extend(["first_name", "last_name"])
        if "email" in fields:
            user.email = fields["email"]
            update_fields.append("email")

        if update_fields:
            try:
                user.save(update_fields=update_fields)
            except DatabaseError as e:
                raise DirectoryError("update", username, e) from e

        return self._account(user)

    def get_group(self, name: str) -> Group:
        try:
            return Group.objects.get(name=name)
        except Group.DoesNotExist as e:
            raise UnknownGroup(name) from e
        except DatabaseError as e:
            raise DirectoryError("get_group", name, e) from e

    def add_membership(self, group: Group, username: str) -> None:
        try:
            user = self._get_user(username)
            # add() is a no-op for existing memberships; nothing is ever removed
            user.groups.add(group)
        except self.user_model.DoesNotExist as e:
            raise DirectoryError("add_membership", username, e) from e
        except DatabaseError as e:
            raise DirectoryError("add_membership", username, e) from e
