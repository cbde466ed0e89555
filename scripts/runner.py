"""
Supabase Keep-Alive - Runner
============================
Probes every configured account one after another and aggregates the
outcomes. Shared by the CLI, the HTTP handlers and the dashboard.
"""

import os
import sys
import time
from dataclasses import dataclass

# Local imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from scripts.probe import Outcome, RecordMode, probe_account


class NoAccountsConfigured(Exception):
    """No slot holds both a URL and a key."""


@dataclass(frozen=True)
class Summary:
    outcomes: tuple

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    def counts(self) -> dict:
        return {"total": self.total, "succeeded": self.succeeded, "failed": self.failed}

    def to_dict(self) -> dict:
        return {
            "summary": self.counts(),
            "results": [o.to_dict() for o in self.outcomes],
        }


def run_keepalive(accounts, mode=RecordMode.SINGLE, source: str = "supabase-keepalive",
                  client_factory=None, on_start=None, on_result=None,
                  pause: float = 0.0) -> Summary:
    """
    Probes each account sequentially, in the given order.

    Args:
        accounts: Accounts from get_accounts()
        mode: RecordMode used for every probe
        source: Tag written into the ping metadata
        client_factory: Passed through to probe_account
        on_start: Called as on_start(account) before each probe
        on_result: Called as on_result(account, outcome) after each probe
        pause: Seconds to wait between two accounts

    Returns:
        Summary: One outcome per account, in input order

    Raises:
        NoAccountsConfigured: If accounts is empty
    """
    accounts = list(accounts)
    if not accounts:
        raise NoAccountsConfigured("No Supabase accounts configured")

    mode = RecordMode.parse(mode)
    outcomes = []

    for index, account in enumerate(accounts):
        if on_start:
            on_start(account)

        try:
            outcome = probe_account(account, mode=mode, source=source,
                                    client_factory=client_factory)
        except Exception as e:
            outcome = Outcome(account.id, account.name, False, f"Unknown error: {e}")

        outcomes.append(outcome)

        if on_result:
            on_result(account, outcome)

        if pause and index < len(accounts) - 1:
            time.sleep(pause)

    return Summary(outcomes=tuple(outcomes))
