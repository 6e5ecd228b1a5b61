"""Prometheus counters for the account workflows."""

from __future__ import annotations

from prometheus_client import Counter

REGISTRATIONS = Counter(
    "user_service_registrations_total",
    "Accounts created through the register workflow.",
)

LOGINS = Counter(
    "user_service_logins_total",
    "Login attempts by outcome.",
    ["outcome"],
)

SESSION_CACHE_LOOKUPS = Counter(
    "user_service_session_cache_lookups_total",
    "Session cache lookups by result (hit, miss, error).",
    ["result"],
)

SIDE_EFFECT_FAILURES = Counter(
    "user_service_side_effect_failures_total",
    "Best-effort side effects that failed and were skipped.",
    ["kind"],
)

TOKENS_REJECTED = Counter(
    "user_service_tokens_rejected_total",
    "Tokens that failed verification, by audience and reason.",
    ["audience", "reason"],
)
