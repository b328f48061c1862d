#!/usr/bin/env python3
"""
browse.py — Query, mark and summarize the local anime catalog

Reads output/anime_cache.json; never calls Jikan. Titles shown can
optionally be queued for translation with --translate.

Usage:
  python browse.py --year 2020                      # list one year
  python browse.py --type Movie --search titan      # filter by type + title
  python browse.py --mark 5114                      # toggle watched mark
  python browse.py --stats                          # loaded / watched / coverage
  python browse.py --export-table output/years.csv  # year table as CSV
  python browse.py --clear-marked                   # drop all watched marks
  python browse.py --clear-cache                    # drop all cached records
"""

import sys
import csv
import logging
import argparse
from pathlib import Path

from anime_catalog.catalog import AnimeCatalog
from anime_catalog.config import load_config
from anime_catalog.query import QueryFilter
from anime_catalog.stats import year_bars

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def print_records(catalog: AnimeCatalog, records, limit: int):
    if not records:
        print("No matching anime. Fetch a year first or loosen the filters.")
        return
    for record in records[:limit]:
        mark = '✓' if catalog.marked.is_marked(record.id) else ' '
        print(f"[{mark}] {record.id:>6}  {record.score_display:>5}  "
              f"{record.year or '????'}  {record.media_type or '':<8} "
              f"{record.episodes_display:>4} eps  {record.title}")
    if len(records) > limit:
        print(f"... {len(records) - limit} more")


def print_stats(catalog: AnimeCatalog):
    stats = catalog.stats()
    print(f"Loaded:   {stats.loaded}")
    print(f"Watched:  {stats.marked}")
    print(f"Coverage: {stats.coverage}%")
    hot = stats.hot_year
    print(f"Hot year: {f'{hot[0]} · {hot[1]} titles' if hot else '-'}")
    for year, height in year_bars(stats.marked_by_year):
        print(f"  {str(year)[2:]} {'#' * max(1, height // 6)}")


def export_year_table(catalog: AnimeCatalog, output_path: Path):
    rows = catalog.year_table(translate=False)
    width = max((len(records) for _, records in rows), default=0)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(['year'] + [f"#{i}" for i in range(1, width + 1)])
        for year, records in rows:
            cells = [
                f"{r.title} ✓" if catalog.marked.is_marked(r.id) else r.title
                for r in records
            ]
            writer.writerow([year] + cells + [''] * (width - len(cells)))

    print(f"Year table written to {output_path}")


def main():
    parser = argparse.ArgumentParser(
        description='Query, mark and summarize the local anime catalog'
    )
    parser.add_argument('--year', type=int)
    parser.add_argument('--type', dest='media_type', help='TV, Movie, OVA, ...')
    parser.add_argument('--status', help='e.g. "Finished Airing"')
    parser.add_argument('--search', default='', help='Case-insensitive title substring')
    watched = parser.add_mutually_exclusive_group()
    watched.add_argument('--watched', action='store_true', help='Only watched titles')
    watched.add_argument('--unwatched', action='store_true', help='Only unwatched titles')
    parser.add_argument('--limit', type=int, default=50)
    parser.add_argument('--translate', action='store_true',
                        help='Queue shown titles for translation and wait')

    parser.add_argument('--mark', type=int, metavar='ID', help='Toggle watched mark')
    parser.add_argument('--stats', action='store_true')
    parser.add_argument('--export-table', type=Path, metavar='PATH')
    parser.add_argument('--clear-marked', action='store_true')
    parser.add_argument('--clear-cache', action='store_true')
    parser.add_argument('--clear-translations', action='store_true')
    parser.add_argument('--config', default='config.yaml')
    args = parser.parse_args()

    try:
        config = load_config(Path(args.config))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    catalog = AnimeCatalog(config)
    try:
        if args.mark is not None:
            state = catalog.toggle_marked(args.mark)
            print(f"{args.mark}: {'watched' if state else 'not watched'}")
        elif args.clear_marked:
            catalog.clear_marked()
            print("Watched marks cleared")
        elif args.clear_cache:
            catalog.clear_records()
            print("Record cache cleared")
        elif args.clear_translations:
            catalog.clear_translations()
            print("Translation cache cleared")
        elif args.stats:
            print_stats(catalog)
        elif args.export_table:
            export_year_table(catalog, args.export_table)
        else:
            marked = True if args.watched else (False if args.unwatched else None)
            flt = QueryFilter(
                year=args.year,
                media_type=args.media_type,
                status=args.status,
                keyword=args.search,
                marked=marked,
            )
            records = catalog.query(flt, translate=args.translate)
            if args.translate:
                catalog.translator.wait()
                # Titles deduplicated against an in-flight sibling pick up its result here
                catalog.apply_cached_translations(records)
                records = catalog.query(flt, translate=False)
            print_records(catalog, records, args.limit)
    finally:
        catalog.close()


if __name__ == '__main__':
    main()
