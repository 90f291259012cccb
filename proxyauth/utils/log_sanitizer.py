"""
Log sanitizing filter.
Asserted identities often are e-mail addresses; hash them (and mask client IPs)
before auth log records are written.
"""

import hashlib
import logging
import re


class SanitizingFilter(logging.Filter):
    """Filter that sanitizes e-mail addresses and IPv4 addresses from log records."""

    EMAIL_PATTERN = re.compile(r'\b([A-Za-z0-9._%+-]+)@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b')
    IPV4_PATTERN = re.compile(r'\b((?:[0-9]{1,3}\.){3})[0-9]{1,3}\b')

    def sanitize(self, text: str) -> str:
        """Replace the local part of e-mails with a short digest and the last IPv4 octet with xxx."""
        text = self.EMAIL_PATTERN.sub(
            lambda m: f"user_{hashlib.sha256(m.group(1).encode()).hexdigest()[:8]}@{m.group(2)}",
            text,
        )
        return self.IPV4_PATTERN.sub(lambda m: f"{m.group(1)}xxx", text)

    def _sanitize_arg(self, arg):
        return self.sanitize(arg) if isinstance(arg, str) else arg

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter and sanitize the log record."""
        record.msg = self.sanitize(str(record.msg))

        # Only string args are rewritten so numeric format specifiers keep working
        if record.args:
            if isinstance(record.args, dict):
                record.args = {key: self._sanitize_arg(value) for key, value in record.args.items()}
            else:
                record.args = tuple(self._sanitize_arg(arg) for arg in record.args)

        return True
