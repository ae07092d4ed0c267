#!/usr/bin/env python3
"""
Command-line access to the intake matcher and the labor rate tools.

Usage:
  # Intake questions for a customer concern
  helper-cli match "My check engine light is on and flashing"
  helper-cli match "need ac" --context

  # Symptom categories in catalog order
  helper-cli categories

  # Labor rate groups (from a JSON file, or the service database)
  helper-cli groups --groups-json groups.json
  helper-cli groups --db

  # Import labor rate groups from CSV into the service database
  helper-cli seed-groups labor_rate_groups.csv

  # One-shot reconcile of a repair order with a captured token
  helper-cli reconcile --token abc --shop 469 --order 1001 --groups-json groups.json
"""

import argparse
import asyncio
import json
from pathlib import Path


def _load_store(args):
    if getattr(args, "db", False):
        from helper_api.store import SqlConfigStore, make_engine

        return SqlConfigStore(make_engine())

    from helper_engine.config.settings import LABOR_RATE_GROUPS_KEY
    from helper_engine.src.store import MemoryConfigStore

    groups = []
    if getattr(args, "groups_json", None):
        groups = json.loads(Path(args.groups_json).read_text())
    return MemoryConfigStore({LABOR_RATE_GROUPS_KEY: groups})


def run_match(args):
    from helper_engine.src.symptoms import build_questions_context, questions_for

    if args.context:
        print(build_questions_context(args.concern))
        return

    category, questions = questions_for(args.concern)
    if category:
        print(f"\nCategory: {category.name}")
    else:
        print("\nNo category matched - general questions:")
    print("-" * 55)
    for i, q in enumerate(questions, start=1):
        print(f"  {i}. {q}")


def run_categories(args):
    from helper_engine.src.symptoms import category_names

    print("Symptom categories:")
    for name in category_names():
        print(f"  - {name}")


def run_groups(args):
    from helper_engine.src.store import LaborRateGroupBook

    groups = LaborRateGroupBook(_load_store(args)).all()
    if not groups:
        print("No labor rate groups configured")
        return
    for i, group in enumerate(groups):
        print(f"  [{i}] {group.name}: ${group.labor_rate / 100:.2f}/hr - {', '.join(group.makes)}")


def run_seed_groups(args):
    from helper_api.seed import seed_groups
    from helper_api.store import SqlConfigStore, make_engine

    count = seed_groups(Path(args.csv), SqlConfigStore(make_engine()))
    print(f"Seeded {count} labor rate groups")


async def _reconcile_once(args) -> object:
    from helper_engine.config.settings import TEKMETRIC_WEB_URL
    from helper_engine.src.reconciler import LaborRateWatcher

    base_url = (args.base_url or TEKMETRIC_WEB_URL).rstrip("/")
    watcher = LaborRateWatcher(_load_store(args))
    watcher.notifier.subscribe(lambda notice: print(f"Refresh sent: {notice.model_dump()}"))
    try:
        watcher.on_request_headers(f"{base_url}/api/token/shop/{args.shop}", {"x-auth-token": args.token})
        return await watcher.on_request_completed(f"{base_url}/api/shop/{args.shop}/repair-order/{args.order}")
    finally:
        await watcher.client.aclose()


def run_reconcile(args):
    outcome = asyncio.run(_reconcile_once(args))
    print(f"Outcome: {outcome}")


def main():
    parser = argparse.ArgumentParser(description="HEART Helper tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # match
    mp = subparsers.add_parser("match", help="Intake questions for a concern")
    mp.add_argument("concern", help="Customer concern text")
    mp.add_argument("--context", action="store_true", help="Print the prompt context block instead")
    mp.set_defaults(func=run_match)

    # categories
    cp = subparsers.add_parser("categories", help="List symptom categories")
    cp.set_defaults(func=run_categories)

    # groups
    gp = subparsers.add_parser("groups", help="List labor rate groups")
    gp.add_argument("--groups-json", help="JSON file with a list of groups")
    gp.add_argument("--db", action="store_true", help="Read groups from the service database")
    gp.set_defaults(func=run_groups)

    # seed-groups
    sp = subparsers.add_parser("seed-groups", help="Import labor rate groups from CSV")
    sp.add_argument("csv", help="CSV with name, makes, labor_rate columns")
    sp.set_defaults(func=run_seed_groups)

    # reconcile
    rp = subparsers.add_parser("reconcile", help="Reconcile one repair order's labor rate")
    rp.add_argument("--token", required=True, help="Captured x-auth-token value")
    rp.add_argument("--shop", required=True, help="Tekmetric shop id")
    rp.add_argument("--order", required=True, help="Repair order id")
    rp.add_argument("--base-url", help="Tekmetric origin (shop, sandbox or cba)")
    rp.add_argument("--groups-json", help="JSON file with a list of groups")
    rp.add_argument("--db", action="store_true", help="Read groups from the service database")
    rp.set_defaults(func=run_reconcile)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
