"""
Immutable proxyauth configuration value.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple


def _empty_mapping():
    return MappingProxyType({})


@dataclass(frozen=True)
class AuthConfig:
    """
    Settings consumed by the identity resolver, role mapper and orchestrator.

    Built once at process start and shared read-only between requests.
    ``attribute_headers`` and the keys of ``role_mapping`` are lowercased.
    """
    create_users: bool = False
    update_info: bool = False
    update_roles: bool = False
    convert_to_utf8: bool = False
    default_roles: Tuple[str, ...] = ()
    full_name_header: Optional[str] = None
    email_header: Optional[str] = None
    attribute_headers: FrozenSet[str] = frozenset()
    role_mapping: Mapping[str, Tuple[str, ...]] = field(default_factory=_empty_mapping)

    @classmethod
    def defaults(cls):
        """Conservative configuration used when nothing could be loaded."""
        return cls()

    @property
    def role_mapping_enabled(self) -> bool:
        return bool(self.attribute_headers)

    def referenced_groups(self) -> FrozenSet[str]:
        """All group names this configuration may assign."""
        groups = set(self.default_roles)
        for names in self.role_mapping.values():
            groups.update(names)
        groups.discard("")
        return frozenset(groups)
