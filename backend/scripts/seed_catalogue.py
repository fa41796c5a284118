#!/usr/bin/env python3
"""
Seed the product catalogue from a JSON file, or from the built-in demo
catalogue when no file is given.

The file may be a list of product entries or an object with an "items"
list. Entries missing a name, category or price are reported and skipped.

Usage:
    python scripts/seed_catalogue.py --file catalogue.json
    python scripts/seed_catalogue.py --reset
"""
import argparse
import json
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from storefront.db import SessionLocal, init_db
from storefront.db.seed import DEMO_CATALOGUE, seed_catalogue


def load_entries(path: str):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise RuntimeError(f"Failed to parse JSON from {path}: {e}")

    if isinstance(data, dict):
        if "items" in data and isinstance(data["items"], list):
            return data["items"]
        # treat dict values as entries
        return list(data.values())
    if isinstance(data, list):
        return data
    return []


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=None, help="Path to a product JSON file")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate tables first")
    args = parser.parse_args()

    if args.file and not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)

    init_db(reset=args.reset)
    entries = load_entries(args.file) if args.file else DEMO_CATALOGUE

    db = SessionLocal()
    try:
        written = seed_catalogue(db, entries)
    finally:
        db.close()
    print("Seeded products:", written)
