"""Address validation and canonical form."""
from __future__ import annotations

from typing import Optional

from eth_utils import is_address

from ensight.services.errors import InvalidAddressError


def is_valid_address(value: object) -> bool:
    """True for a 0x-prefixed 40-hex-char address.

    Mixed-case input must carry a valid EIP-55 checksum; all-lowercase and
    all-uppercase input is accepted as is.
    """
    if not isinstance(value, str) or not value.startswith("0x"):
        return False
    return is_address(value)


def canonical_address(value: object, field: str = "address") -> str:
    """Return the lowercase form of ``value`` or raise InvalidAddressError."""
    text = value.strip() if isinstance(value, str) else value
    if not is_valid_address(text):
        raise InvalidAddressError(value, field)
    return text.lower()


def optional_address(value: object) -> Optional[str]:
    """Lowercase ``value`` when it is a valid address, otherwise None."""
    text = value.strip() if isinstance(value, str) else value
    if not text or not is_valid_address(text):
        return None
    return text.lower()
