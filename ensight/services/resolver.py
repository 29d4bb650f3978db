"""ENS name resolution.

The resolver is an external collaborator: ``Web3NameResolver`` talks to an
Ethereum RPC endpoint, ``CachedNameResolver`` memoizes any resolver through
the expiring cache. Lookups that find nothing return None and are not cached.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, TypeVar

from eth_utils import to_checksum_address
from web3 import AsyncHTTPProvider, AsyncWeb3

from ensight.schemas.ens import AvatarRecord, EnsProfile, ResolvedName, ReverseRecord, TextRecord
from ensight.services.addresses import canonical_address
from ensight.services.cache import TTLCache
from ensight.services.errors import InvalidNameError, ResolutionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

AVATAR_KEY = "avatar"
PROFILE_TEXT_KEYS = ("url", "email", "description", "twitter", "github")


class NameResolver(ABC):
    """Forward, reverse and text-record lookups against ENS."""

    @abstractmethod
    async def resolve_name(self, name: str) -> Optional[str]:
        """Address for ``name``, or None when it does not resolve."""

    @abstractmethod
    async def lookup_address(self, address: str) -> Optional[str]:
        """Primary ENS name for ``address``, or None."""

    @abstractmethod
    async def get_text(self, name: str, key: str) -> Optional[str]:
        """Text record ``key`` of ``name``, or None."""

    async def get_avatar(self, name: str) -> Optional[str]:
        """Raw ``avatar`` record of ``name`` (URL, IPFS or NFT URI), or None."""
        return await self.get_text(name, AVATAR_KEY)


class Web3NameResolver(NameResolver):
    """Resolver backed by web3's async ENS module."""

    def __init__(self, rpc_url: str):
        self.rpc_url = rpc_url
        self._w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))

    async def _call(self, what: str, pending: Awaitable[T]) -> T:
        try:
            return await pending
        except Exception as exc:
            raise ResolutionError(f"ENS {what} failed: {exc}") from exc

    async def resolve_name(self, name: str) -> Optional[str]:
        address = await self._call(f"resolve {name}", self._w3.ens.address(name))
        return str(address) if address else None

    async def lookup_address(self, address: str) -> Optional[str]:
        name = await self._call(f"reverse {address}", self._w3.ens.name(to_checksum_address(address)))
        return name or None

    async def get_text(self, name: str, key: str) -> Optional[str]:
        return await self._call(f"text {name}/{key}", self._w3.ens.get_text(name, key)) or None


class CachedNameResolver(NameResolver):
    """Memoizes another resolver's non-empty answers in a TTLCache.

    Concurrent misses for the same key may both reach the inner resolver;
    the second write simply overwrites the first with the same answer.
    """

    def __init__(self, inner: NameResolver, cache: TTLCache):
        self.inner = inner
        self.cache = cache

    async def _cached(self, key: str, lookup: Callable[[], Awaitable[Optional[str]]]) -> Optional[str]:
        hit = self.cache.get(key)
        if hit is not None:
            logger.debug("cache hit %s", key)
            return hit
        result = await lookup()
        if result is not None:
            self.cache.set(key, result)
        return result

    async def resolve_name(self, name: str) -> Optional[str]:
        return await self._cached(f"resolve:{name}", lambda: self.inner.resolve_name(name))

    async def lookup_address(self, address: str) -> Optional[str]:
        return await self._cached(f"reverse:{address.lower()}", lambda: self.inner.lookup_address(address))

    async def get_text(self, name: str, key: str) -> Optional[str]:
        return await self._cached(f"text:{name}:{key}", lambda: self.inner.get_text(name, key))


def _check_name(name: str) -> str:
    name = (name or "").strip()
    if not name.endswith(".eth"):
        raise InvalidNameError(name)
    return name


async def resolve(resolver: NameResolver, name: str) -> Optional[ResolvedName]:
    """Resolve an ENS name to its address."""
    name = _check_name(name)
    address = await resolver.resolve_name(name)
    if not address:
        return None
    return ResolvedName(name=name, address=address)


async def reverse(resolver: NameResolver, address: str) -> Optional[ReverseRecord]:
    """Reverse lookup, verified by resolving the found name forward again."""
    canonical = canonical_address(address)
    name = await resolver.lookup_address(address.strip())
    if not name:
        return None
    forward = await resolver.resolve_name(name)
    verified = bool(forward) and forward.lower() == canonical
    return ReverseRecord(address=address.strip(), name=name, verified=verified)


async def text_record(resolver: NameResolver, name: str, key: str) -> Optional[TextRecord]:
    name = _check_name(name)
    value = await resolver.get_text(name, key)
    if not value:
        return None
    return TextRecord(name=name, key=key, value=value)


async def avatar(resolver: NameResolver, name: str) -> Optional[AvatarRecord]:
    name = _check_name(name)
    value = await resolver.get_avatar(name)
    if not value:
        return None
    return AvatarRecord(name=name, avatar=value)


async def profile(resolver: NameResolver, name: str) -> Optional[EnsProfile]:
    """Forward resolution plus avatar and common text records.

    Only the forward lookup is mandatory: a failing avatar or text lookup is
    logged and left out of the profile.
    """
    name = _check_name(name)
    address = await resolver.resolve_name(name)
    if not address:
        return None
    result = EnsProfile(name=name, address=address)
    try:
        result.avatar = await resolver.get_avatar(name)
    except ResolutionError as exc:
        logger.debug("avatar lookup for %s failed: %s", name, exc)
    for key in PROFILE_TEXT_KEYS:
        try:
            value = await resolver.get_text(name, key)
        except ResolutionError as exc:
            logger.debug("text record %s of %s failed: %s", key, name, exc)
            continue
        if value:
            result.text_records[key] = value
    return result
