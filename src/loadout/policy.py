"""Session consent policy for danger-zone optimizations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from loadout.catalog.optimizations import tier_of


@dataclass(frozen=True, slots=True)
class Policy:
    """Caller session state consulted before ludicrous keys are compiled or shared.

    Acknowledgement is one-way: ``acknowledge_ludicrous`` returns an acknowledged
    copy and nothing turns it back off for the lifetime of the session.
    """

    ludicrous_acknowledged: bool = False

    def acknowledge_ludicrous(self) -> Policy:
        return replace(self, ludicrous_acknowledged=True)


DEFAULT_POLICY = Policy()


def is_eligible(key: str, *, policy: Policy) -> bool:
    if tier_of(key) != "ludicrous":
        return True
    return policy.ludicrous_acknowledged


def partition_eligible(
    keys: Iterable[str], *, policy: Policy
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split ``keys`` into (eligible, blocked), preserving input order."""
    eligible: list[str] = []
    blocked: list[str] = []
    for key in keys:
        (eligible if is_eligible(key, policy=policy) else blocked).append(key)
    return tuple(eligible), tuple(blocked)
