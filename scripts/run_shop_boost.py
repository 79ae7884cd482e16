"""
Run the shop boost pipeline for one shop from the CLI.
"""

from __future__ import annotations

import argparse
import json
import logging

from app.services.shop_boost_service import get_shop_boost_service


def main() -> int:
    parser = argparse.ArgumentParser(description="Build a shop health snapshot from a pending intake.")
    parser.add_argument("shop_id", help="Shop UUID.")
    parser.add_argument(
        "--intake-id",
        dest="intake_id",
        default=None,
        help="Optional pending intake UUID; defaults to the most recent pending intake.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    snapshot = get_shop_boost_service().build_shop_boost_profile(args.shop_id, args.intake_id)
    if snapshot is None:
        print(json.dumps({"shopId": args.shop_id, "status": "no_snapshot"}))
        return 1

    print(json.dumps(snapshot.to_payload(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
