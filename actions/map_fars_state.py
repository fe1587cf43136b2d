#!/usr/bin/env python3
"""
Draw a map of fatal crash locations in one state for one year.

**Usage**:
    python actions/map_fars_state.py 1 2014
    python actions/map_fars_state.py 6 2015 --data-dir data/ --output maps/ca_2015.png

**What this script does**:
  1. Load accident_<year>.csv.bz2 from the data directory
  2. Keep the state's crashes with a known location
  3. Draw them over US state outlines and save the map as PNG

**Requirements**:
  - The year's accident file in the data directory
  - A state boundary file (FARS_STATE_BOUNDARIES, defaults to the Census
    cartographic boundary zip, which needs network access on first use)
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path so we can import fars modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fars.data.io import FarsFileNotFoundError
from fars.plotting.state_map import InvalidStateError, MatplotlibStateMapRenderer, map_state
from fars.utils.logging import configure_logging


def parse_args(argv=None):
    """
    Parse command line arguments.

    Returns:
        Namespace with attributes: state, year, data_dir, output, json_logs.
    """
    parser = argparse.ArgumentParser(
        description="Map FARS fatal crash locations for a state and year",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("state", type=int, help="FARS state code (e.g., 1 for Alabama)")
    parser.add_argument("year", help="Year of the accident file (e.g., 2014)")

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
        help="PNG path for the map (default: fars_state_<state>_<year>.png)",
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
      - 0: Map written, or nothing to plot
      - 1: Missing data file or invalid state code
      - 2: Fatal error
    """
    try:
        args = parse_args(argv)
        configure_logging(json_format=args.json_logs)

        import matplotlib
        matplotlib.use("Agg")  # Non-interactive backend

        output_path = Path(args.output or f"fars_state_{args.state}_{args.year}.png")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        renderer = MatplotlibStateMapRenderer(output_path=output_path)

        print(f"Mapping fatalities for state {args.state} in {args.year}...")
        try:
            result = map_state(args.state, args.year, renderer=renderer, data_dir=args.data_dir)
        except FarsFileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except InvalidStateError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        if result is None:
            print("  ⚠ No accidents to plot")
            sys.exit(0)

        print(f"  ✓ Saved map to {output_path}")
        sys.exit(0)

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
