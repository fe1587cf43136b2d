#!/usr/bin/env python3
"""
Summarize monthly FARS fatality counts for one or more years.

**Usage**:
    python actions/summarize_fars_years.py 2013 2014 2015
    python actions/summarize_fars_years.py 2013-2015 --data-dir data/
    python actions/summarize_fars_years.py 2013-2015 --output data/results/monthly.csv

**What this script does**:
  1. Parse command line arguments (years, data directory, output path)
  2. Load each year's accident_<year>.csv.bz2 (missing years are warned about
     and skipped)
  3. Print the month x year count table
  4. Optionally write it to CSV

**Example output**:
    $ python actions/summarize_fars_years.py 2013-2015
    Summarizing FARS fatalities for 3 year(s) from .
     MONTH  2013  2014  2015
         1  2230  2168  2368
         2  1952  1893  1968
       ...
    Done! 3/3 year(s) summarized.
"""

import argparse
import sys
import warnings
from pathlib import Path

# Add project root to Python path so we can import fars modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fars.analytics.summary import summarize_years, unique_years
from fars.config.settings import get_settings
from fars.data.loaders import FarsDataWarning
from fars.data.schemas import MONTH_COLUMN
from fars.utils.cli import parse_year_tokens
from fars.utils.logging import configure_logging


def parse_args(argv=None):
    """
    Parse command line arguments.

    Returns:
        Namespace with attributes: years (list of str), data_dir, output, json_logs.
    """
    parser = argparse.ArgumentParser(
        description="Summarize FARS fatality counts by month and year",
        epilog="""
Examples:
  # Three years, files in the current directory
  python actions/summarize_fars_years.py 2013 2014 2015

  # Inclusive range, files elsewhere
  python actions/summarize_fars_years.py 2013-2015 --data-dir data/

  # Save the table
  python actions/summarize_fars_years.py 2013-2015 --output monthly.csv
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "years",
        nargs="+",
        help="Years or inclusive ranges (e.g., 2014 or 2013-2015)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory holding accident_<year>.csv.bz2 files (default: FARS_DATA_DIR or .)",
    )

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Optional CSV path for the summary table",
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

    **Exit codes**:
      - 0: Success (every requested year summarized)
      - 1: Bad arguments, or some/all years could not be loaded
      - 2: Fatal error
    """
    try:
        args = parse_args(argv)
        configure_logging(json_format=args.json_logs)

        try:
            years = parse_year_tokens(args.years)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        data_dir = Path(args.data_dir) if args.data_dir else get_settings().data.data_dir
        print(f"Summarizing FARS fatalities for {len(years)} year(s) from {data_dir}")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", FarsDataWarning)
            summary = summarize_years(years, data_dir=data_dir)

        failed_years = [w for w in caught if issubclass(w.category, FarsDataWarning)]
        for warning in caught:
            if issubclass(warning.category, FarsDataWarning):
                print(f"  ⚠ {warning.message}", file=sys.stderr)
            else:
                warnings.showwarning(
                    warning.message, warning.category, warning.filename, warning.lineno
                )

        year_columns = [col for col in summary.columns if col != MONTH_COLUMN]
        if not year_columns:
            print("Error: none of the requested years could be loaded.", file=sys.stderr)
            sys.exit(1)

        print(summary.to_string(index=False))

        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            summary.to_csv(output_path, index=False)
            print(f"  ✓ Saved summary to {output_path}")

        print(f"Done! {len(year_columns)}/{len(unique_years(years))} year(s) summarized.")
        sys.exit(0 if not failed_years else 1)

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
