"""
Print repair statistics derived from a local repair-order CSV export.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from shop_history.aggregation import derive_stats_from_csv


def main() -> int:
    parser = argparse.ArgumentParser(description="Derive repair statistics from a CSV export.")
    parser.add_argument("path", type=Path, help="Repair-order history CSV file.")
    args = parser.parse_args()

    text = args.path.read_text(encoding="utf-8-sig", errors="replace")
    print(json.dumps(derive_stats_from_csv(text).to_payload(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
