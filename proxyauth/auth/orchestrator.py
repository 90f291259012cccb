"""
Per-request authentication of identities asserted by an upstream proxy.

The orchestrator is called on every request (often many times per page) and
walks this state machine:

    NO_SESSION -> CACHED_HIT
    NO_SESSION -> IDENTITY_MISSING
    NO_SESSION -> RESOLVED -> FOUND | CREATED -> [INFO_UPDATED] -> [ROLES_SYNCED] -> CACHED
    NO_SESSION -> RESOLVED -> NOT_PROVISIONED | DIRECTORY_FAILURE

Directory problems never escape: each error kind is caught where it can
occur and the flow degrades to "absent", "skipped" or "unauthenticated".
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Mapping, MutableMapping, Optional

from proxyauth.auth import identity as identity_resolver
from proxyauth.auth import role_mapping
from proxyauth.auth.directory import DirectoryAccount, UserDirectory
from proxyauth.auth.exceptions import DirectoryError, MissingIdentity, UnknownGroup
from proxyauth.auth.identity import NormalizedIdentity
from proxyauth.auth.session_cache import Principal, SessionCache
from proxyauth.config.model import AuthConfig

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    NO_SESSION = "no_session"
    CACHED_HIT = "cached_hit"
    IDENTITY_MISSING = "identity_missing"
    RESOLVED = "resolved"
    FOUND = "found"
    CREATED = "created"
    INFO_UPDATED = "info_updated"
    ROLES_SYNCED = "roles_synced"
    CACHED = "cached"
    NOT_PROVISIONED = "not_provisioned"
    DIRECTORY_FAILURE = "directory_failure"


TERMINAL_STATES = frozenset({
    AuthState.CACHED_HIT,
    AuthState.IDENTITY_MISSING,
    AuthState.CACHED,
    AuthState.NOT_PROVISIONED,
    AuthState.DIRECTORY_FAILURE,
})


@dataclass
class AuthOutcome:
    """Result of one authentication check."""
    state: AuthState = AuthState.NO_SESSION
    principal: Optional[Principal] = None
    account: Optional[DirectoryAccount] = None
    identity: Optional[NormalizedIdentity] = None
    created: bool = False
    roles_applied: FrozenSet[str] = frozenset()
    roles_skipped: FrozenSet[str] = frozenset()
    trail: List[AuthState] = field(default_factory=lambda: [AuthState.NO_SESSION])

    @property
    def authenticated(self) -> bool:
        return self.principal is not None

    def advance(self, state: AuthState) -> "AuthOutcome":
        self.state = state
        self.trail.append(state)
        return self


class AuthenticationOrchestrator:
    """
    Resolve an asserted identity into a directory account and cache it
    against the session.
    """

    def __init__(self, config: AuthConfig, directory: UserDirectory, session_cache: SessionCache):
        self.config = config
        self.directory = directory
        self.session_cache = session_cache

    def authenticate(
        self,
        session: Optional[MutableMapping],
        remote_user: Optional[str],
        headers: Mapping[str, str],
    ) -> AuthOutcome:
        outcome = AuthOutcome()

        # Check if the user is already logged in
        cached = self.session_cache.get(session)
        if cached is not None:
            logger.debug(f"{cached.username} already logged in, returning.")
            outcome.principal = cached
            return outcome.advance(AuthState.CACHED_HIT)

        try:
            identity = identity_resolver.normalize(remote_user, headers, self.config)
        except MissingIdentity as e:
            logger.debug(str(e))
            return outcome.advance(AuthState.IDENTITY_MISSING)

        outcome.identity = identity
        outcome.advance(AuthState.RESOLVED)

        account = self._lookup(identity.id)

        if account is None:
            account = self._create(identity.id)
            if account is None:
                state = AuthState.DIRECTORY_FAILURE if self.config.create_users else AuthState.NOT_PROVISIONED
                return outcome.advance(state)
            outcome.created = True
            outcome.advance(AuthState.CREATED)
        else:
            outcome.advance(AuthState.FOUND)

        outcome.account = account

        if outcome.created or self.config.update_info:
            updated = self._update_info(account, identity)
            if updated is not None:
                outcome.account = updated
                outcome.advance(AuthState.INFO_UPDATED)

        if outcome.created or self.config.update_roles:
            roles = role_mapping.effective_roles(headers, self.config)
            outcome.roles_applied, outcome.roles_skipped = self._assign_roles(account.username, roles)
            outcome.advance(AuthState.ROLES_SYNCED)

        # Now that we have the user's account, cache it and return
        logger.debug(f"Logging in user {account.username}")
        principal = Principal(username=account.username, pk=account.pk)
        self.session_cache.put(session, principal)
        outcome.principal = principal
        return outcome.advance(AuthState.CACHED)

    def _lookup(self, username: str) -> Optional[DirectoryAccount]:
        try:
            return self.directory.lookup(username)
        except DirectoryError as e:
            # Treat as not found; creation may still succeed
            logger.error(f"Error getting user {username}: {e}")
            return None

    def _create(self, username: str) -> Optional[DirectoryAccount]:
        if not self.config.create_users:
            logger.debug(
                f"Configuration does NOT allow for creation of new user accounts, "
                f"authentication will fail for {username}"
            )
            return None

        logger.info(f"Creating user account for {username}")
        try:
            return self.directory.create(username)
        except DirectoryError as e:
            logger.debug(
                f"Error creating user {username}. Will ignore and try to get the user "
                f"(maybe it was already created): {e}"
            )

        account = self._lookup(username)
        if account is None:
            logger.error(
                f"Error creating user {username}. Got no user after attempting to create "
                f"it (so it probably was not a duplicate)."
            )
        return account

    def _update_info(self, account: DirectoryAccount, identity: NormalizedIdentity) -> Optional[DirectoryAccount]:
        """Write changed name/email to the directory. Returns None when nothing was written."""
        fields = {}

        if identity.full_name is not None and identity.full_name != account.full_name:
            logger.debug(f"updating user fullName to '{identity.full_name}'")
            fields["full_name"] = identity.full_name
        else:
            logger.debug(f"new user fullName is same as old one: '{identity.full_name}'")

        if identity.email is not None and identity.email != account.email:
            logger.debug(f"updating user emailAddress to '{identity.email}'")
            fields["email"] = identity.email
        else:
            logger.debug(f"new user emailAddress is same as old one: '{identity.email}'")

        if not fields:
            return None

        try:
            return self.directory.update(account.username, fields)
        except DirectoryError as e:
            logger.error(f"Couldn't update user {account.username}: {e}")
            return None

    def _assign_roles(self, username: str, roles: FrozenSet[str]):
        """Add the user to each group. Never removes existing memberships."""
        applied = set()
        skipped = set()

        if not roles:
            logger.debug("No roles specified, not adding any roles...")
            return frozenset(), frozenset()

        logger.debug(f"Assigning roles to user {username}")

        for role in sorted(roles):
            logger.debug(f"Assigning {username} to role {role}")
            try:
                group = self.directory.get_group(role)
                self.directory.add_membership(group, username)
            except UnknownGroup:
                logger.warning(
                    f"Attempted to add user {username} to role {role} but the role does not exist."
                )
                skipped.add(role)
            except DirectoryError as e:
                logger.error(f"Attempted to add user {username} to role {role} but it failed: {e}")
                skipped.add(role)
            else:
                applied.add(role)

        return frozenset(applied), frozenset(skipped)
