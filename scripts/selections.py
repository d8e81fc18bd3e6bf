#!/usr/bin/env python3
"""
Selected subjects command line client.

Drives the selection reconciler against a running API, the same way the
subject picker does.

Usage:
    python scripts/selections.py list                         # Show selections
    python scripts/selections.py toggle MATH1 "Math Advanced" # Select / deselect
    python scripts/selections.py toggle MATH1                 # Name from the catalog
    python scripts/selections.py toggle MATH1 "Math Advanced" --category Mathematics
    python scripts/selections.py --base-url URL list          # Custom API URL

The access token is read from --token or the ACCESS_TOKEN environment variable.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Optional

# Allow running from the repository root without installing
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings
from logging_config import configure_logging
from integrations.notifications import NotificationCenter
from integrations.selection_api import HttpSelectionStore
from models.notification import NotificationKind
from models.selection import SelectableItem, is_temp_id
from reconciler import SelectionReconciler
from exceptions import SelectionStoreError


def print_notification(notification):
    if notification is not None:
        marker = "OK " if notification.kind == NotificationKind.SUCCESS else "ERR"
        print(f"[{marker}] {notification.message}")


def print_selections(reconciler: SelectionReconciler):
    selections = reconciler.selections
    if not selections:
        print("No subjects selected.")
        return

    print(f"Selected subjects ({len(selections)}):")
    for entry in selections:
        state = " (saving)" if is_temp_id(entry.id) else ""
        category = f" [{entry.category}]" if entry.category else ""
        print(f"  {entry.subject_code:<10} {entry.subject_name}{category}{state}")


async def resolve_item(store: HttpSelectionStore, args) -> Optional[SelectableItem]:
    """Build the item from the arguments, or from the catalog when no name is given."""
    if args.name:
        return SelectableItem(
            code=args.code,
            name=args.name,
            category=args.category,
            reasoning=args.reasoning,
        )

    item = await store.find_catalog_item(args.code)
    if item is not None and (args.category or args.reasoning):
        item = item.model_copy(update={
            "category": args.category or item.category,
            "reasoning": args.reasoning or item.reasoning,
        })
    return item


async def run(args) -> int:
    notifications = NotificationCenter(on_change=print_notification)

    async with HttpSelectionStore(lambda: args.token, base_url=args.base_url) as store:
        reconciler = SelectionReconciler(store, notifications)

        if not await reconciler.load():
            print("Error: could not load selections")
            return 1

        if args.command == "toggle":
            try:
                item = await resolve_item(store, args)
            except SelectionStoreError as e:
                print(f"Error: could not read the catalog: {e.message}")
                return 1
            if item is None:
                print(f"Error: {args.code} is not in the HSC subject catalog")
                return 1
            reconciler.toggle(item)
            await reconciler.wait_idle()

        print_selections(reconciler)

    return 1 if notifications.errors else 0


def main():
    parser = argparse.ArgumentParser(
        description="Selected subjects client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--base-url",
        default=settings.api_base_url,
        help=f"API base URL (default: {settings.api_base_url})"
    )
    parser.add_argument(
        "--token",
        default=os.getenv("ACCESS_TOKEN"),
        help="Supabase access token (default: $ACCESS_TOKEN)"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="Show selected subjects")

    toggle = commands.add_parser("toggle", help="Select or deselect a subject")
    toggle.add_argument("code", help="Subject code")
    toggle.add_argument("name", nargs="?", default=None, help="Subject name (default: looked up in the catalog)")
    toggle.add_argument("--category", default=None, help="Subject category")
    toggle.add_argument("--reasoning", default=None, help="Why it was chosen")

    args = parser.parse_args()

    if not args.token:
        print("Error: no access token. Pass --token or set ACCESS_TOKEN.")
        sys.exit(1)

    configure_logging(settings)

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
