"""
Django signals for proxyauth.
Announces freshly resolved principals and drops the cached principal on logout.
"""
import logging
from django.contrib.auth.signals import user_logged_out
from django.dispatch import Signal, receiver

from proxyauth.auth.session_cache import SessionPrincipalCache

logger = logging.getLogger(__name__)

# Sent with ``request`` and ``outcome`` after a principal is resolved and cached.
# Not sent for cached hits.
principal_resolved = Signal()


@receiver(principal_resolved)
def log_principal_resolved(sender, request, outcome, **kwargs):
    """
    Log proxy logins for the audit trail.
    Only the principal's id is logged; e-mail addresses are sanitized by the logging filter.
    """
    logger.info(
        f"Logged in user {outcome.principal.username} via proxy "
        f"(created={outcome.created}, roles_applied={len(outcome.roles_applied)}, "
        f"roles_skipped={len(outcome.roles_skipped)})"
    )


@receiver(user_logged_out)
def clear_cached_principal(sender, request, user, **kwargs):
    if request is not None and hasattr(request, 'session'):
        SessionPrincipalCache().clear(request.session)
