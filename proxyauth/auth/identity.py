"""
Identity normalization for asserted remote users.
"""
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from proxyauth.auth.exceptions import MissingIdentity
from proxyauth.config.model import AuthConfig
from proxyauth.utils.headers import read_header

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedIdentity:
    id: str
    full_name: str
    email: Optional[str] = None


def normalize_username(raw_id: Optional[str]) -> str:
    """
    Lowercase the asserted identity.

    Raises:
        MissingIdentity: raw_id is None or empty
    """
    if raw_id is None or len(raw_id) == 0:
        raise MissingIdentity()
    return raw_id.lower()


def get_full_name(headers: Mapping[str, str], userid: str, config: AuthConfig) -> str:
    full_name = read_header(headers, config.full_name_header, config.convert_to_utf8)
    logger.debug(f"Got fullName '{full_name}' for header '{config.full_name_header}'")

    if full_name is None or not full_name.strip():
        return userid
    # Directories store first/last name, which drops extra whitespace
    return " ".join(full_name.split())


def get_email_address(headers: Mapping[str, str], config: AuthConfig) -> Optional[str]:
    email = read_header(headers, config.email_header, config.convert_to_utf8)
    logger.debug(f"Got emailAddress '{email}' for header '{config.email_header}'")

    if email is None or not email.strip():
        return None
    return email.lower()


def normalize(raw_id: Optional[str], headers: Mapping[str, str], config: AuthConfig) -> NormalizedIdentity:
    """
    Turn the asserted identity and profile headers into a NormalizedIdentity.

    Pure with respect to its inputs. Normalizing an already normalized id
    yields the same id.
    """
    userid = normalize_username(raw_id)
    return NormalizedIdentity(
        id=userid,
        full_name=get_full_name(headers, userid, config),
        email=get_email_address(headers, config),
    )
