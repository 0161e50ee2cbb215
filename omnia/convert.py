"""
Omnia: convert a CSV health export into normalized JSON records.

Usage:
  omnia-convert                          # reads data/omnia_data.csv
  omnia-convert "exports/Omnia Data.csv" > data/data.json
  python -m omnia.convert export.csv

The records are printed to stdout as a pretty-printed JSON array.
"""

import argparse
import json
import sys
from typing import List, Optional

import structlog

from omnia.engine.csv_normalizer import CSVInputError, normalize_csv_text
from omnia.log import configure_logging

logger = structlog.get_logger()

DEFAULT_CSV_PATH = "data/omnia_data.csv"


def convert_file(csv_path: str) -> str:
    """
    Read a CSV export and return the normalized records as JSON text.

    Raises:
        FileNotFoundError: If the CSV file does not exist
        CSVInputError: If the CSV has no data rows
    """
    with open(csv_path, "r", encoding="utf-8-sig") as f:
        content = f.read()

    records = normalize_csv_text(content)
    logger.info("csv_converted", path=csv_path, records=len(records))
    return json.dumps(records, indent=2, ensure_ascii=False)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Omnia: convert a CSV health export into JSON records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("csv_path", nargs="?", default=DEFAULT_CSV_PATH,
                        metavar="export.csv",
                        help=f"CSV export to convert (default: {DEFAULT_CSV_PATH})")
    parser.add_argument("--log-level", default=None,
                        help="Log level for messages on stderr (default: INFO)")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    try:
        output = convert_file(args.csv_path)
    except FileNotFoundError:
        print(f"  ✗ File not found: {args.csv_path}", file=sys.stderr)
        return 1
    except CSVInputError as e:
        print(f"  ✗ {e}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
