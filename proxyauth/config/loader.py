"""
Configuration loading for proxyauth.

Reads the flat key/value configuration (YAML file and/or the ``PROXYAUTH``
Django setting) into an immutable AuthConfig. Loading fails soft: a broken or
missing file yields conservative defaults plus a ConfigLoadError for the
caller to report.
"""
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple, Optional

import yaml

from proxyauth.auth.exceptions import ConfigLoadError
from proxyauth.config.model import AuthConfig
from proxyauth.constants.config_keys import ConfigKeys
from proxyauth.utils.headers import split_delimited

logger = logging.getLogger(__name__)


class ConfigLoadResult(NamedTuple):
    config: AuthConfig
    error: Optional[ConfigLoadError] = None


def parse_bool(value: Any) -> bool:
    """Non-strict boolean: only a case-insensitive "true" is true."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


def parse_string(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _normalize_keys(raw: Mapping[str, Any]) -> dict:
    """Trim and lowercase keys; later duplicates overwrite earlier ones."""
    normalized = {}
    for key, value in raw.items():
        normalized[str(key).strip().lower()] = value
    return normalized


def _parse_role_mapping(properties: Mapping[str, Any]) -> dict:
    role_mapping = {}
    prefix = ConfigKeys.ROLE_MAPPING_PREFIX

    for key, value in properties.items():
        if not key.startswith(prefix):
            continue

        attribute_value = key[len(prefix):].strip()
        if not attribute_value:
            logger.warning(f"Ignoring role mapping key '{key}' without an attribute value")
            continue

        groups = tuple(split_delimited(value))
        role_mapping[attribute_value] = groups
        logger.debug(f"Found role mapping declared as {key}: {', '.join(groups)}")

    return role_mapping


def parse_config(raw: Mapping[str, Any]) -> AuthConfig:
    """
    Build an AuthConfig from raw configuration properties.

    Keys are matched case-insensitively. List values may be delimited
    strings or sequences.
    """
    properties = _normalize_keys(raw or {})

    create_users = parse_bool(properties.get(ConfigKeys.CREATE_USERS))
    logger.debug(f"Setting create new users to {create_users}")

    update_info = parse_bool(properties.get(ConfigKeys.UPDATE_INFO))
    logger.debug(f"Setting update user information to {update_info}")

    update_roles = parse_bool(properties.get(ConfigKeys.UPDATE_ROLES))
    logger.debug(f"Setting update user roles to {update_roles}")

    convert_to_utf8 = parse_bool(properties.get(ConfigKeys.CONVERT_TO_UTF8))
    logger.debug(f"Setting convert header values to UTF-8 to {convert_to_utf8}")

    default_roles = tuple(split_delimited(properties.get(ConfigKeys.DEFAULT_ROLES)))
    for role in default_roles:
        logger.debug(f"Adding role {role} to list of default user roles")

    full_name_header = parse_string(properties.get(ConfigKeys.FULLNAME_HEADER))
    logger.debug(f"HTTP Header that may contain user's full name set to: {full_name_header}")

    email_header = parse_string(properties.get(ConfigKeys.EMAIL_HEADER))
    logger.debug(f"HTTP Header that may contain user's email address set to: {email_header}")

    attribute_headers = frozenset(
        name.lower() for name in split_delimited(properties.get(ConfigKeys.ROLE_ATTRIBUTE_NAMES))
    )
    for name in sorted(attribute_headers):
        logger.debug(f"Reading dynamic attribute: {name}")

    return AuthConfig(
        create_users=create_users,
        update_info=update_info,
        update_roles=update_roles,
        convert_to_utf8=convert_to_utf8,
        default_roles=default_roles,
        full_name_header=full_name_header,
        email_header=email_header,
        attribute_headers=attribute_headers,
        role_mapping=MappingProxyType(_parse_role_mapping(properties)),
    )


def read_config_file(path) -> dict:
    """
    Read the raw key/value mapping from a YAML file.

    Raises:
        ConfigLoadError: the file is unreadable, malformed or not a mapping
    """
    path = Path(path)

    try:
        with open(path, encoding="utf-8") as f:
            # BaseLoader keeps every scalar a string: "yes"/"on" are not booleans here
            data = yaml.load(f, Loader=yaml.BaseLoader)
    except OSError as e:
        raise ConfigLoadError(path, e) from e
    except UnicodeDecodeError as e:
        raise ConfigLoadError(path, f"not valid UTF-8: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(path, e) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigLoadError(path, f"expected a mapping, got {type(data).__name__}")
    return data


def load_config_file(path, overrides: Optional[Mapping[str, Any]] = None) -> ConfigLoadResult:
    """
    Load configuration from ``path`` with optional ``overrides`` merged on top.

    Never raises for a bad source: the ConfigLoadError is returned alongside
    the configuration. Without overrides that configuration is
    ``AuthConfig.defaults()``; with overrides it is the overrides parsed on
    their own, so keys they leave out keep their conservative defaults.
    """
    logger.debug(f"Initializing authenticator using configuration file {path}")

    error = None
    raw = {}
    if path:
        try:
            raw = read_config_file(path)
        except ConfigLoadError as e:
            logger.warning(f"Unable to read configuration file, using default properties: {e}")
            error = e

    if overrides:
        raw = {**_normalize_keys(raw), **_normalize_keys(overrides)}

    if error is not None and not overrides:
        return ConfigLoadResult(AuthConfig.defaults(), error)

    return ConfigLoadResult(parse_config(raw), error)
