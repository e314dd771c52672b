"""
DNS Resolution Cache

Best-effort hostname -> address map with a fixed time-to-live, shared across
the process to cut redundant lookups under load. Entries are never trusted
past their TTL; a stale or failed entry simply triggers a fresh lookup.
"""

from __future__ import annotations

import ipaddress
import time
from dataclasses import dataclass
from typing import Callable

import dns.asyncresolver
import dns.exception
import dns.resolver
import structlog

from codex_cms.monitoring import get_metrics

logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class CachedAddress:
    address: str
    resolved_at: float


def _is_ip_literal(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


class DNSCache:
    """
    Async A-record cache.

    Usage:
        cache = DNSCache(ttl_seconds=60)
        address = await cache.resolve("db.internal")
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        resolver: dns.asyncresolver.Resolver | None = None,
        clock: Callable[[], float] = time.monotonic,
        timeout_seconds: float = 5.0,
    ):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CachedAddress] = {}
        if resolver is None:
            resolver = dns.asyncresolver.Resolver()
            resolver.timeout = timeout_seconds
            resolver.lifetime = timeout_seconds
        self._resolver = resolver

    def __len__(self) -> int:
        return len(self._entries)

    def _fresh(self, entry: CachedAddress, now: float) -> bool:
        return now - entry.resolved_at < self.ttl_seconds

    def get(self, hostname: str) -> str | None:
        """Cached address for `hostname` if still within its TTL."""
        entry = self._entries.get(hostname.lower())
        if entry is None or not self._fresh(entry, self._clock()):
            return None
        return entry.address

    def prune(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        expired = [host for host, entry in self._entries.items() if not self._fresh(entry, now)]
        for host in expired:
            del self._entries[host]
        return len(expired)

    async def resolve(self, hostname: str) -> str | None:
        """
        Resolve `hostname` to an IPv4 address, using the cache when fresh.

        IP literals are returned as-is. Returns None when the lookup fails;
        failures are never cached.
        """
        if not hostname:
            return None
        if _is_ip_literal(hostname):
            return hostname

        metrics = get_metrics()
        key = hostname.lower()
        cached = self.get(key)
        if cached is not None:
            metrics.track_dns_lookup("hit")
            return cached

        self.prune()
        try:
            answers = await self._resolver.resolve(key, "A")
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer, dns.resolver.NoNameservers) as exc:
            metrics.track_dns_lookup("error")
            logger.warning("DNS lookup returned no address", hostname=key, error=type(exc).__name__)
            return None
        except dns.exception.DNSException as exc:
            metrics.track_dns_lookup("error")
            logger.warning("DNS lookup failed", hostname=key, error=str(exc))
            return None

        addresses = [str(rdata) for rdata in answers]
        if not addresses:
            metrics.track_dns_lookup("error")
            return None

        metrics.track_dns_lookup("miss")
        self._entries[key] = CachedAddress(address=addresses[0], resolved_at=self._clock())
        logger.debug("DNS address cached", hostname=key, address=addresses[0], ttl_seconds=self.ttl_seconds)
        return addresses[0]
