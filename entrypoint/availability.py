#!/usr/bin/env python
"""
Find bookable listings for a stay.

Usage:
    python entrypoint/availability.py --start 2019-11-08 --days 4 --people 4
    python entrypoint/availability.py --start 2019-11-08 --days 2 --people 2 --top-rated
    python entrypoint/availability.py --start 2019-11-08 --days 3 --people 2 \
        --histogram outputs/prices.png --map outputs/map.html
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse
import logging
from datetime import date

from stay_finder.availability import AvailabilityConfig, AvailabilityEngine, AvailabilityQuery
from stay_finder.availability.visualize import create_availability_map, plot_price_distribution
from stay_finder.data.loader import get_clean_connection, load_tables
from stay_finder.features.quality import select_top_listings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Find bookable listings for a stay')
    parser.add_argument('--start', type=date.fromisoformat, required=True, help='First night of the stay (YYYY-MM-DD)')
    parser.add_argument('--days', type=int, default=1, help='Number of nights')
    parser.add_argument('--people', type=int, default=1, help='Party size')
    parser.add_argument('--data-dir', type=Path, default=None, help='Directory with listings.csv and calendar.csv')
    parser.add_argument('--price-column', type=str, default='price',
                        help="Calendar column with the nightly rate ('price' or 'adjusted_price')")
    parser.add_argument('--top-rated', action='store_true',
                        help='Only listings above their neighbourhood mean on every review score')
    parser.add_argument('--round-price', action='store_true', help='Round price per person to whole units')
    parser.add_argument('--histogram', type=Path, default=None, help='Save a price histogram (PNG)')
    parser.add_argument('--map', type=Path, default=None, help='Save an interactive map (HTML)')
    parser.add_argument('--limit', type=int, default=10, help='Number of cheapest listings to print')
    parser.add_argument('--verbose', action='store_true', help='Log loading and cleaning details')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(message)s'
    )

    con = get_clean_connection(args.data_dir, price_column=args.price_column, verbose=args.verbose)
    listings, calendar = load_tables(con)
    con.close()

    if args.top_rated:
        listings = select_top_listings(listings)

    engine = AvailabilityEngine(
        listings,
        calendar,
        AvailabilityConfig(round_to_whole_currency=args.round_price)
    )
    query = AvailabilityQuery(start_of_stay=args.start, n_days=args.days, n_people=args.people)

    print("=" * 70)
    print(f"AVAILABILITY: {query.n_days} night(s) from {query.start_of_stay} for {query.n_people} guest(s)")
    print("=" * 70)

    results = engine.availability_frame(query.start_of_stay, query.n_days, query.n_people)

    if not query.is_valid:
        print("\nNights and guests must both be at least 1.")
    elif not engine.covers(query.start_of_stay):
        first, last = engine.date_range
        print(f"\nStart date is outside the loaded calendar ({first} to {last}).")

    if results.empty:
        print("\nNo listings available.")
    else:
        prices = results['price_per_day_person']
        print(f"\n{len(results):,} listings available")
        print(f"  Price per day per person: min {prices.min():.2f} | "
              f"median {prices.median():.2f} | max {prices.max():.2f}")

        cheapest = results.sort_values(['price_per_day_person', 'listing_id']).head(args.limit)
        print(f"\nCheapest {len(cheapest)}:")
        for row in cheapest.itertuples(index=False):
            neighborhood = row.neighborhood if isinstance(row.neighborhood, str) else '-'
            print(f"  {row.listing_id:>10}  {row.price_per_day_person:>8.2f}  "
                  f"{neighborhood:<20.20}  {row.name}")

    if args.histogram:
        plot_price_distribution(results, output_path=args.histogram)
        print(f"\nHistogram saved to {args.histogram}")
    if args.map:
        create_availability_map(results, output_path=args.map)
        print(f"Map saved to {args.map}")

    engine.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
