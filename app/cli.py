"""Cache maintenance commands.

Usage:
  python -m app.cli cache clear [--prefix letters] [--force]
  python -m app.cli cache stats
  python -m app.cli cache keys [--pattern "letters:*"] [--limit 100]
"""

import argparse
import logging
import sys

from app.logging import configure_logging
from app.services.cache import cache

logger = logging.getLogger(__name__)

DEFAULT_KEY_LIMIT = 100


def _confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N]: ")
    return answer.strip().lower() in {"y", "yes"}


def cache_clear(args) -> int:
    if not cache.enabled:
        print("Cache is disabled (REDIS_URL is not set)")
        return 1
    if args.prefix:
        if args.prefix not in cache.KNOWN_PREFIXES:
            print(f"Unknown prefix: {args.prefix}")
            print(f"Known prefixes: {', '.join(cache.KNOWN_PREFIXES)}")
            return 1
        print(f"Clearing cache with prefix: {args.prefix}")
        deleted = cache.forget_by_prefix(args.prefix)
    else:
        if not args.force and not _confirm("Clear all application cache?"):
            print("Aborted")
            return 1
        print("Clearing all application cache...")
        deleted = cache.flush_all()
    logger.info("Cache clear removed %d keys", deleted)
    print(f"Cache cleared: {deleted} keys removed")
    return 0


def cache_stats(args) -> int:
    stats = cache.stats()
    if not stats.get("enabled"):
        print("Cache is disabled (REDIS_URL is not set)")
        return 1
    if "error" in stats:
        print(f"Failed to get Redis stats: {stats['error']}")
        return 1
    print("Redis cache statistics:")
    for label, key in (
        ("Redis version", "redis_version"),
        ("Connected clients", "connected_clients"),
        ("Used memory", "used_memory_human"),
        ("Keyspace hits", "keyspace_hits"),
        ("Keyspace misses", "keyspace_misses"),
        ("Application keys", "total_keys"),
    ):
        value = stats.get(key)
        print(f"  {label:<20} {value if value is not None else 'N/A'}")
    hits = int(stats.get("keyspace_hits") or 0)
    misses = int(stats.get("keyspace_misses") or 0)
    total = hits + misses
    hit_rate = round(hits / total * 100, 2) if total else 0
    print(f"  {'Hit rate':<20} {hit_rate}%")
    print("Keys by prefix:")
    for prefix, count in stats.get("by_prefix", {}).items():
        print(f"  {prefix:<20} {count}")
    return 0


def cache_keys(args) -> int:
    if not cache.enabled:
        print("Cache is disabled (REDIS_URL is not set)")
        return 1
    print(f"Searching for keys matching: {args.pattern}")
    found = cache.keys(args.pattern, limit=args.limit + 1)
    if not found:
        print("No keys found matching the pattern.")
        return 0
    for key in found[: args.limit]:
        print(f"  - {key}")
    if len(found) > args.limit:
        print(f"... more than {args.limit} keys, narrow the pattern or raise --limit")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m app.cli", description="Office correspondence maintenance"
    )
    groups = parser.add_subparsers(dest="group", required=True)

    cache_parser = groups.add_parser("cache", help="Manage the Redis cache")
    actions = cache_parser.add_subparsers(dest="action", required=True)

    clear = actions.add_parser("clear", help="Clear cached entries")
    clear.add_argument(
        "--prefix",
        help=f"Only clear one namespace ({', '.join(cache.KNOWN_PREFIXES)})",
    )
    clear.add_argument(
        "--force", action="store_true", help="Skip the confirmation prompt"
    )
    clear.set_defaults(handler=cache_clear)

    stats = actions.add_parser("stats", help="Show Redis statistics")
    stats.set_defaults(handler=cache_stats)

    keys = actions.add_parser("keys", help="List cache keys")
    keys.add_argument("--pattern", default="*", help="Key pattern without the app prefix")
    keys.add_argument("--limit", type=int, default=DEFAULT_KEY_LIMIT)
    keys.set_defaults(handler=cache_keys)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
