"""
Connection settings and key enumeration for the Redis JSON export.

A host descriptor is either a redis:// (or rediss://) URL or a comma separated
list of ``host[:port]`` endpoints. When a sentinel service name is given the
endpoints are treated as sentinels and the current master of that service is
used.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from redis.asyncio import Redis
from redis.asyncio.sentinel import Sentinel

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6379
DEFAULT_SENTINEL_PORT = 26379
DEFAULT_SCAN_COUNT = 1000
# Ceiling on any single call to the store, in seconds
SYNC_TIMEOUT = 3.0


class ConfigurationError(ValueError):
    """Raised for missing or malformed export options."""


@dataclass
class ExportOptions:
    host: str
    file_path: str
    service_name: Optional[str] = None
    db: int = 0
    password: Optional[str] = None
    match: Optional[str] = None
    scan_count: int = DEFAULT_SCAN_COUNT
    skip_unsupported: bool = False
    socket_timeout: float = SYNC_TIMEOUT

    def validate(self):
        if not self.host or not self.host.strip():
            raise ConfigurationError("Host is not set")
        if not self.file_path or not str(self.file_path).strip():
            raise ConfigurationError("File path is not set")
        if self.db < 0:
            raise ConfigurationError(f"Database index must be non-negative, got {self.db}")
        if self.scan_count <= 0:
            raise ConfigurationError(f"Scan count must be positive, got {self.scan_count}")
        if self.service_name is not None and not self.service_name.strip():
            raise ConfigurationError("Sentinel service name is empty")


def is_url(host):
    return host.startswith(("redis://", "rediss://", "unix://"))


def parse_endpoints(host, default_port=DEFAULT_PORT) -> List[Tuple[str, int]]:
    """Split ``"a:6379,b"`` into ``[("a", 6379), ("b", default_port)]``."""
    endpoints = []
    for part in host.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, port = part.rpartition(":")
        if not sep:
            name, port = part, None
        if not name:
            raise ConfigurationError(f"Invalid endpoint '{part}'")
        if port is None:
            endpoints.append((name, default_port))
            continue
        try:
            endpoints.append((name, int(port)))
        except ValueError:
            raise ConfigurationError(f"Invalid port in endpoint '{part}'") from None
    if not endpoints:
        raise ConfigurationError(f"No endpoints in host '{host}'")
    return endpoints


def create_client(options: ExportOptions) -> Redis:
    """Build an (unconnected) client for the configured logical database."""
    common = dict(
        db=options.db,
        password=options.password,
        socket_timeout=options.socket_timeout,
        socket_connect_timeout=options.socket_timeout,
        decode_responses=True,
    )

    if options.service_name:
        if is_url(options.host):
            raise ConfigurationError("A sentinel service needs host[:port] sentinel endpoints, not a URL")
        sentinels = parse_endpoints(options.host, DEFAULT_SENTINEL_PORT)
        logger.debug("Using sentinels %s for service %s", sentinels, options.service_name)
        sentinel = Sentinel(sentinels, socket_timeout=options.socket_timeout)
        return sentinel.master_for(options.service_name, **common)

    if is_url(options.host):
        # Values present in the URL take precedence over the options
        return Redis.from_url(options.host, **common)

    host, port = parse_endpoints(options.host)[0]
    return Redis(host=host, port=port, **common)


async def connect(options: ExportOptions) -> Redis:
    """Open a client and check the store is reachable and accepts our credentials."""
    client = create_client(options)
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise
    logger.info("Connected to %s (db %d)", options.host, options.db)
    return client


async def iter_keys(client, match=None, count=DEFAULT_SCAN_COUNT):
    """Yield every key of the client's database using the SCAN cursor."""
    async for key in client.scan_iter(match=match, count=count):
        yield key
