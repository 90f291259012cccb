"""
Attribute-to-group mapping.

Scans the headers named in ``header.dynamicroles.attributenames`` and maps
each attribute value they carry to directory group names.
"""
import logging
from typing import FrozenSet, Mapping

from proxyauth.config.model import AuthConfig
from proxyauth.utils.headers import as_text, convert_to_utf8, iter_headers, split_delimited

logger = logging.getLogger(__name__)


def compute_roles(headers: Mapping[str, str], config: AuthConfig) -> FrozenSet[str]:
    """
    Compute the set of groups mapped from the request's attribute headers.

    Returns an empty set when no attribute headers are configured. Unmapped
    values are ignored. The result is a set; callers must not rely on order.
    """
    if not config.attribute_headers:
        return frozenset()

    roles = set()

    # Repeated headers each contribute to the union
    for header_name, header_value in iter_headers(headers):
        name = header_name.strip().lower()

        # see if this header is something we'd be interested in
        if name not in config.attribute_headers:
            continue

        logger.debug(f"Analyzing header '{header_name}' for a mapped role = {header_value}")

        if config.convert_to_utf8:
            converted = convert_to_utf8(header_value)
            if converted is not None:
                header_value = converted
                logger.debug(f"header value converted to UTF-8 '{header_value}' for header '{name}'")

        for token in split_delimited(as_text(header_value)):
            attribute_value = token.lower()
            groups = config.role_mapping.get(attribute_value)
            if groups:
                roles.update(groups)
                logger.debug(f"Mapping role '{attribute_value}' to '{', '.join(groups)}'")

    # clean up a bit, in case these came into the set
    roles.discard(None)
    roles.discard("")

    return frozenset(roles)


def effective_roles(headers: Mapping[str, str], config: AuthConfig) -> FrozenSet[str]:
    """Default roles plus header-derived roles, blanks removed."""
    roles = {role.strip() for role in config.default_roles if role and role.strip()}
    roles.update(role.strip() for role in compute_roles(headers, config) if role and role.strip())
    return frozenset(roles)
