"""Seed a store with demo data.

Usage:
    cd backend
    python -m coffeeos.scripts.seed --orders 3
"""

import argparse
import logging
import sys

from coffeeos.core.config import get_settings
from coffeeos.core.errors import PosError
from coffeeos.core.logging_config import configure_logging
from coffeeos.services.seed import seed_demo_data
from coffeeos.store import build_store


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Populate the document store with a demo cafe.")
    parser.add_argument("--tenant-name", default="The Cozy Bean Corp.")
    parser.add_argument("--orders", type=int, default=3, help="sample orders to seat (0 to skip)")
    parser.add_argument("--seed", type=int, default=None, help="random seed for sample orders")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings)

    print("=" * 60)
    print(f"CoffeeOS - Seed Demo Data ({settings.store_backend} store)")
    print("=" * 60)

    store = build_store(settings)
    try:
        summary = seed_demo_data(store, tenant_name=args.tenant_name, sample_orders=args.orders, seed=args.seed)
    except PosError as e:
        logging.getLogger(__name__).error(f"Seeding failed: {e.message}")
        print(f"Error seeding data: {e.message}")
        return 1

    for key, value in summary.to_dict().items():
        print(f"  + {key}: {value}")
    print("\nSeed complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
