"""
Supabase Keep-Alive - CLI
=========================
Pings every configured Supabase project to prevent the free tier pause.
(Free tier pauses after 1 week of inactivity)

Accounts are read from the .env file at the project root.

Usage:
    python scripts/keepalive.py
    python scripts/keepalive.py --mode single
    python scripts/keepalive.py --notify

Exit code is 0 only when every account succeeded.
"""

import sys
import os
import argparse

# Local imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from scripts.accounts import get_accounts
from scripts.runner import run_keepalive
from scripts.utils import send_discord_notification
from config import settings


def _on_start(account):
    print(f"⏳ Pinging {account.name}...")


def _on_result(account, outcome):
    icon = "✅" if outcome.succeeded else "❌"
    print(f"{icon} {account.name}: {outcome.message}")


def run(mode: str, notify: bool = False) -> int:
    """Runs the keep-alive on every account. Returns the exit code."""
    accounts = get_accounts()

    if not accounts:
        print("❌ No Supabase accounts configured in .env file")
        return 1

    print(f"🚀 Starting keep-alive ping for {len(accounts)} account(s)...\n")

    summary = run_keepalive(
        accounts,
        mode=mode,
        source=settings.SOURCE_CLI,
        on_start=_on_start,
        on_result=_on_result,
    )

    print(f"\n📊 Summary: {summary.succeeded} succeeded, {summary.failed} failed "
          f"out of {summary.total} total")

    if summary.failed > 0:
        if notify:
            failures = "\n".join(
                f"- {o.account_name}: {o.message}" for o in summary.outcomes if not o.succeeded
            )
            send_discord_notification(
                "Supabase Keep-Alive - FAILED",
                f"{summary.failed}/{summary.total} account(s) failed:\n{failures}",
                success=False
            )
        return 1

    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Keep Supabase free tier projects active")
    parser.add_argument("--mode", choices=["single", "paired"], default=None,
                        help="Rows per probe (default: KEEPALIVE_RECORD_MODE or 'paired')")
    parser.add_argument("--notify", action="store_true", help="Send Discord notification on failure")
    args = parser.parse_args(argv)

    mode = args.mode or settings.RECORD_MODE

    try:
        settings.validate_config(record_mode=mode)
        return run(mode, notify=args.notify)
    except Exception as e:
        print(f"💥 Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
