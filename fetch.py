#!/usr/bin/env python3
"""
fetch.py — Pull anime by release year from Jikan into the local cache

Records are normalized, upserted into output/anime_cache.json and their
non-Chinese titles are queued for translation.

Usage:
  python fetch.py --year 2024                 # one year, light (1 page)
  python fetch.py --year 2024 --pages 4       # one year, 4 pages
  python fetch.py --prefetch light            # every year, 1 page each
  python fetch.py --prefetch deep             # every year, 4 pages each
  python fetch.py --prefetch deep --no-wait   # skip queued translations
"""

import sys
import logging
import argparse
from pathlib import Path

from anime_catalog.catalog import AnimeCatalog
from anime_catalog.config import load_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def print_range_progress(processed: int, total: int, year: int):
    ratio = round(processed / total * 100)
    print(f"  [{processed}/{total}] {year} done ({ratio}%)")


def print_run_stats(stats: dict):
    print(f"Jikan requests: {stats['requests']} "
          f"({stats['rate_limited']} rate-limited), "
          f"translation cache hits: {stats['translation_cache_hits']}")


def main():
    parser = argparse.ArgumentParser(
        description='Fetch anime by release year into the local catalog cache'
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument('--year', type=int, help='Fetch a single release year')
    target.add_argument('--prefetch', choices=['light', 'deep'],
                        help='Fetch every configured year (light=1 page, deep=4 pages)')
    parser.add_argument('--pages', type=int, help='Pages for --year (default: light_pages)')
    parser.add_argument('--config', default='config.yaml')
    parser.add_argument('--no-wait', action='store_true',
                        help='Drop queued translations instead of waiting for them '
                             '(translations already running still finish before exit)')
    parser.add_argument('--verbose', '-v', action='store_true')
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = load_config(Path(args.config))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    catalog = AnimeCatalog(config, on_status=lambda message: logger.info(message))

    if args.year:
        report = catalog.fetch_year(args.year, args.pages)
    else:
        report = catalog.prefetch(deep=args.prefetch == 'deep',
                                  on_progress=print_range_progress)

    print()
    print(f"Stored {report.records} records from {report.pages_fetched} pages "
          f"(collection size {len(catalog.store)})")
    if report.exhausted_pages:
        print(f"Rate-limited pages skipped: {len(report.exhausted_pages)}")
    for error in report.errors:
        print(f"  {error}")

    if not args.no_wait:
        progress = catalog.translator.progress()
        if progress.pending:
            print(f"Waiting for {progress.pending} translations...")
        catalog.translator.wait()
    print(catalog.translator.progress().describe())
    print_run_stats(catalog.run_stats())
    catalog.close(wait=not args.no_wait)


if __name__ == '__main__':
    main()
