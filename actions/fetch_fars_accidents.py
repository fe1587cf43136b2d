#!/usr/bin/env python3
"""
Download FARS accident tables from NHTSA and save them as accident_<year>.csv.bz2.

**Usage**:
    python actions/fetch_fars_accidents.py 2013 2014 2015
    python actions/fetch_fars_accidents.py 2013-2015 --output-dir data/
    python actions/fetch_fars_accidents.py 2015 --force

**What this script does**:
  1. Parse command line arguments (years, output directory)
  2. Load download settings from environment (.env file)
  3. For each year:
     a. Skip it if the file already exists (unless --force)
     b. Download the national CSV archive
     c. Extract accident.csv and save it bz2-compressed
  4. Print summary

**Example output**:
    $ python actions/fetch_fars_accidents.py 2014-2015 --output-dir data
    Fetching 2 year(s) into data
      ✓ 2014: data/accident_2014.csv.bz2
      ✓ 2015: data/accident_2015.csv.bz2
    Done! Successfully fetched 2/2 year(s).
"""

import argparse
import sys
from pathlib import Path

import requests

# Add project root to Python path so we can import fars modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fars.config.settings import get_settings
from fars.utils.cli import parse_year_tokens
from fars.utils.logging import configure_logging
from fars.venues.nhtsa_client import (
    FarsClientError,
    FarsServerError,
    FarsYearNotFoundError,
    NhtsaFarsClient,
)


def parse_args(argv=None):
    """
    Parse command line arguments.

    Returns:
        Namespace with attributes: years (list of str), output_dir, force, json_logs.
    """
    parser = argparse.ArgumentParser(
        description="Download FARS accident tables from NHTSA",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "years",
        nargs="+",
        help="Years or inclusive ranges (e.g., 2014 or 2013-2015)",
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory to write accident_<year>.csv.bz2 files (default: FARS_DATA_DIR or .)",
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-download and overwrite files that already exist",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit log records as JSON lines",
    )

    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point for the script.

    **Error handling strategy**:
      - Missing years (404), server errors and timeouts: report and continue
      - Other client errors: report and continue
      - Unexpected errors bubble up (with stack trace)

    **Exit codes**:
      - 0: Success (all years fetched)
      - 1: Bad arguments or configuration, or some years failed
      - 2: Fatal error
    """
    try:
        args = parse_args(argv)
        configure_logging(json_format=args.json_logs)

        try:
            years = parse_year_tokens(args.years)
            settings = get_settings()
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        output_dir = Path(args.output_dir) if args.output_dir else settings.data.data_dir
        print(f"Fetching {len(years)} year(s) into {output_dir}")

        success_count = 0
        error_count = 0

        with NhtsaFarsClient(settings.download) as client:
            for year in years:
                try:
                    path = client.download_accident_file(year, output_dir, force=args.force)
                    print(f"  ✓ {year}: {path}")
                    success_count += 1

                except FarsYearNotFoundError as e:
                    print(f"  ✗ {year}: not published: {e}")
                    error_count += 1

                except requests.Timeout as e:
                    print(f"  ✗ {year}: {e}")
                    error_count += 1

                except FarsServerError as e:
                    print(f"  ✗ {year}: server error: {e}")
                    error_count += 1

                except (FarsClientError, ValueError) as e:
                    print(f"  ✗ {year}: {e}")
                    error_count += 1

        print("=" * 60)
        print(f"Done! Successfully fetched {success_count}/{len(years)} year(s).")
        if error_count > 0:
            print(f"Failed: {error_count} year(s) (see errors above)")

        sys.exit(0 if error_count == 0 else 1)

    except KeyboardInterrupt:
        print("\nInterrupted by user. Exiting...")
        sys.exit(130)

    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(2)


if __name__ == "__main__":
    main()
