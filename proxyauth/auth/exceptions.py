"""
Error kinds raised inside the proxy authentication flow.

None of these escape an authentication check: the orchestrator catches each
kind and degrades to "absent", "skipped" or "unauthenticated".
"""


class ProxyAuthError(Exception):
    """Base class for proxyauth errors."""


class ConfigLoadError(ProxyAuthError):
    """The configuration source could not be read or parsed."""

    def __init__(self, source, reason):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"Unable to load proxyauth configuration from {self.source}: {reason}")


class MissingIdentity(ProxyAuthError):
    """The request carries no asserted identity."""

    def __init__(self, message="Remote user was null or empty, can not perform authentication"):
        super().__init__(message)


class DirectoryError(ProxyAuthError):
    """A user directory call failed."""

    def __init__(self, operation, subject, cause=None):
        self.operation = operation
        self.subject = subject
        self.cause = cause
        message = f"Directory {operation} failed for {subject}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class UnknownGroup(ProxyAuthError):
    """A configured group does not exist in the user directory."""

    def __init__(self, group_name):
        self.group_name = group_name
        super().__init__(f"Group '{group_name}' does not exist")
