#!/usr/bin/env python3
"""
Export every key of a Redis logical database to a single JSON file.

Usage:
  redis-json-export -h localhost:6379 -f dump.json
  redis-json-export -h sentinel1:26379,sentinel2:26379 -s mymaster -d 2 -f dump.json
  redis-json-export -h redis://:secret@localhost:6379/0 -f dump.json
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass

import redis

from json_writer import write_document
from redis_connection import ConfigurationError, ExportOptions, connect, iter_keys
from redis_values import UnsupportedTypeError, ValueType, convert

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 1000
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class ExportResult:
    count: int
    path: str


class RedisExporter:
    """Drives one export run: scan, dispatch by type, accumulate, write."""

    def __init__(self, options: ExportOptions, client):
        self.options = options
        self.client = client

    async def collect(self):
        """Return ``(document, count)`` for every key in the database."""
        data = {}
        processed = 0
        async for key in iter_keys(self.client, self.options.match, self.options.scan_count):
            try:
                key_type = ValueType.parse(await self.client.type(key), key)
            except UnsupportedTypeError as e:
                if not self.options.skip_unsupported:
                    raise
                logger.warning("Skipping key: %s", e)
                continue

            if key_type is ValueType.NONE:
                # Deleted or expired after SCAN returned it
                logger.debug("Key %r vanished before export", key)
                continue

            data[key] = await convert(self.client, key, key_type)
            processed += 1
            if processed % PROGRESS_EVERY == 0:
                logger.info("Processed keys: %d", processed)

        return data, processed

    async def export(self) -> ExportResult:
        data, processed = await self.collect()
        path = write_document(data, self.options.file_path)
        return ExportResult(processed, path)


async def run_export(options: ExportOptions) -> ExportResult:
    """Validate options, connect, export and close the connection."""
    options.validate()
    client = await connect(options)
    try:
        return await RedisExporter(options, client).export()
    finally:
        await client.aclose()


def build_parser():
    # -h is the host flag, so help is only available as --help
    parser = argparse.ArgumentParser(
        prog="redis-json-export",
        description="Export all keys of a Redis database to a JSON file",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="Show this help message and exit")
    parser.add_argument("-h", "--host", required=True,
                        help="Host(s) to connect to: host[:port][,host[:port]...] or a redis:// URL")
    parser.add_argument("-s", "--service", dest="service_name",
                        help="Sentinel service name; --host then lists the sentinels")
    parser.add_argument("-d", "--db", type=int, default=0, help="Database index (default 0)")
    parser.add_argument("-p", "--password", default=os.getenv("REDIS_PASSWORD"),
                        help="Password (default $REDIS_PASSWORD)")
    parser.add_argument("-f", "--file", dest="file_path", required=True, help="Output JSON file")
    parser.add_argument("--match", help="Only export keys matching this glob pattern")
    parser.add_argument("--count", dest="scan_count", type=int, default=1000,
                        help="SCAN batch size hint (default 1000)")
    parser.add_argument("--skip-unsupported", action="store_true",
                        help="Skip keys of unsupported types instead of aborting")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def parse_options(argv=None) -> ExportOptions:
    args = build_parser().parse_args(argv)
    level = "DEBUG" if args.verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    return ExportOptions(
        host=args.host,
        file_path=args.file_path,
        service_name=args.service_name,
        db=args.db,
        password=args.password,
        match=args.match,
        scan_count=args.scan_count,
        skip_unsupported=args.skip_unsupported,
    )


def main(argv=None):
    options = parse_options(argv)

    try:
        result = asyncio.run(run_export(options))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except redis.exceptions.ConnectionError as e:
        print(f"Redis connection error: {e}", file=sys.stderr)
        return 1
    except redis.exceptions.RedisError as e:
        print(f"Redis error: {e}", file=sys.stderr)
        return 1
    except UnsupportedTypeError as e:
        print(f"Error: {e}. Nothing was written.", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Could not write {options.file_path}: {e}", file=sys.stderr)
        return 1

    print(f"Exported {result.count} keys to {result.path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
