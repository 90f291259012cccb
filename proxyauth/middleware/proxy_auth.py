"""
Middleware that authenticates requests from the identity asserted by the
upstream authentication proxy.

Must run after SessionMiddleware and AuthenticationMiddleware. Requests that
cannot be authenticated simply continue as anonymous.
"""
import logging

from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ImproperlyConfigured
from django.utils.functional import SimpleLazyObject

from proxyauth.auth.directory import DjangoUserDirectory
from proxyauth.auth.exceptions import DirectoryError
from proxyauth.auth.orchestrator import AuthenticationOrchestrator, AuthState
from proxyauth.auth.session_cache import SessionPrincipalCache
from proxyauth.config import get_auth_config
from proxyauth.signals import principal_resolved

logger = logging.getLogger(__name__)


class ProxyAuthMiddleware:
    # request.META key carrying the asserted identity
    header = "REMOTE_USER"

    def __init__(self, get_response):
        self.get_response = get_response
        self.directory = DjangoUserDirectory()
        self.session_cache = SessionPrincipalCache()

    def get_orchestrator(self):
        return AuthenticationOrchestrator(get_auth_config(), self.directory, self.session_cache)

    def __call__(self, request):
        if not hasattr(request, "session"):
            raise ImproperlyConfigured(
                "The proxyauth middleware requires the session middleware to be installed. "
                "Edit your MIDDLEWARE setting to insert "
                "'django.contrib.sessions.middleware.SessionMiddleware' before "
                "'proxyauth.middleware.proxy_auth.ProxyAuthMiddleware'."
            )

        logger.debug(f"Request made to {request.path} triggered this AuthN check")

        outcome = self.get_orchestrator().authenticate(
            request.session,
            request.META.get(self.header),
            request.headers,
        )
        request.proxyauth_outcome = outcome

        if outcome.authenticated:
            if outcome.account is not None and outcome.account.handle is not None:
                request.user = outcome.account.handle
            else:
                principal = outcome.principal
                request.user = SimpleLazyObject(lambda: self._load_cached_user(request, principal))

            if outcome.state == AuthState.CACHED:
                principal_resolved.send(sender=self.__class__, request=request, outcome=outcome)

        return self.get_response(request)

    def _load_cached_user(self, request, principal):
        """Load the user behind a cached principal on first access to request.user."""
        try:
            user = self.directory.get_by_pk(principal.pk)
        except DirectoryError as e:
            logger.error(f"Error loading cached user {principal.username}: {e}")
            return AnonymousUser()

        if user is None:
            logger.warning(f"Cached user {principal.username} no longer exists, clearing session")
            self.session_cache.clear(request.session)
            return AnonymousUser()
        return user


class HttpProxyAuthMiddleware(ProxyAuthMiddleware):
    """Variant for proxies that forward the identity as a ``Remote-User`` HTTP header."""
    header = "HTTP_REMOTE_USER"
