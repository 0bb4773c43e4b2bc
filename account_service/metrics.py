"""Prometheus counters for account lifecycle events."""

from __future__ import annotations

from prometheus_client import Counter

REGISTRATIONS = Counter(
    "account_registrations",
    "Registrations by stage (staged = activation mail sent, confirmed = account stored).",
    ["stage"],
)
LOGINS = Counter("account_logins", "Login attempts by outcome.", ["outcome"])
DELETIONS = Counter("account_deletions", "Accounts removed by administrators.")
