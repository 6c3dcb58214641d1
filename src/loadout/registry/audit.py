"""Release audit for the stable-id registry."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from loadout.catalog.optimizations import OPTIMIZATION_KEYS
from loadout.models import (
    CPU_TYPES,
    DNS_PROVIDERS,
    GPU_TYPES,
    MONITOR_SOFTWARE_TYPES,
    PERIPHERAL_TYPES,
    PRESET_TYPES,
)
from loadout.registry.ledger import Domain, StableIdRegistry, StableIdTable

IssueLevel = Literal["error", "warning", "info"]

KNOWN_VALUES: dict[Domain, tuple[str, ...]] = {
    "cpu": CPU_TYPES,
    "gpu": GPU_TYPES,
    "dns": DNS_PROVIDERS,
    "peripheral": PERIPHERAL_TYPES,
    "monitor": MONITOR_SOFTWARE_TYPES,
    "preset": PRESET_TYPES,
    "optimization": OPTIMIZATION_KEYS,
}


@dataclass(frozen=True, slots=True)
class AuditIssue:
    level: IssueLevel
    domain: Domain
    message: str

    def __str__(self) -> str:
        return f"[{self.level}] {self.domain}: {self.message}"


def has_errors(issues: Iterable[AuditIssue]) -> bool:
    return any(issue.level == "error" for issue in issues)


def audit_table(table: StableIdTable, known_values: Iterable[str]) -> list[AuditIssue]:
    issues: list[AuditIssue] = []
    domain = table.domain

    def push(level: IssueLevel, message: str) -> None:
        issues.append(AuditIssue(level=level, domain=domain, message=message))

    known = tuple(known_values)
    known_set = set(known)

    for value in known:
        if value not in table.backward:
            push("error", f"Missing ID for {domain} value: {value}")

    for id_, value in sorted(table.forward.items()):
        if value is not None and value not in known_set:
            push("error", f"ID {id_} maps to unknown {domain} value: {value}")

    id_counts = Counter(entry.id for entry in table.entries)
    for id_, count in sorted(id_counts.items()):
        if count > 1:
            push("error", f"Duplicate ID found: {id_}")

    value_counts = Counter(entry.key for entry in table.entries if entry.retired is None)
    for value, count in sorted(value_counts.items()):
        if count > 1:
            push("error", f"Duplicate value found: {value}")

    for value, id_ in sorted(table.backward.items()):
        reverse = table.forward.get(id_)
        if reverse != value:
            push("error", f"Bidirectional mismatch: {value} -> ID {id_} -> {reverse or 'null'}")

    deprecated_ids = {dep.id for dep in table.deprecated}
    for id_, value in sorted(table.forward.items()):
        if value is None and id_ not in deprecated_ids:
            push("error", f"Retired ID {id_} is missing from the deprecation ledger")

    for dep in table.deprecated:
        current = table.forward.get(dep.id)
        if current is not None:
            push(
                "error",
                f"Deprecated ID {dep.id} (was: {dep.former_value}) still maps to '{current}'",
            )
        reused = [
            entry.key
            for entry in table.entries
            if entry.id == dep.id and entry.retired is None and entry.key != dep.former_value
        ]
        for value in reused:
            push(
                "error",
                f"REUSE VIOLATION: ID {dep.id} was '{dep.former_value}' "
                f"(retired {dep.retired}), now assigned to '{value}'",
            )

    _push_stats(table, push)
    return issues


def audit_registry(
    registry: StableIdRegistry,
    known_values: Mapping[Domain, Iterable[str]] | None = None,
) -> list[AuditIssue]:
    values = dict(KNOWN_VALUES)
    if known_values is not None:
        values.update(known_values)
    issues: list[AuditIssue] = []
    for table in registry.tables():
        issues.extend(audit_table(table, values[table.domain]))
    return issues


def _push_stats(table: StableIdTable, push: Callable[[IssueLevel, str], None]) -> None:
    active = sorted(id_ for id_, value in table.forward.items() if value is not None)
    retired = sorted(id_ for id_, value in table.forward.items() if value is None)
    push("info", f"{len(active)} active IDs, {len(retired)} retired")
    if active and active != list(range(active[0], active[0] + len(active))):
        push("info", "IDs are non-sequential (legacy tier blocks)")
    push("info", f"Next available ID: {table.next_id}")
    if retired:
        push("info", f"Retired IDs: {', '.join(str(id_) for id_ in retired)}")
    for dep in table.deprecated:
        reason = f" ({dep.reason})" if dep.reason else ""
        push("info", f"ID {dep.id}: was '{dep.former_value}', retired {dep.retired}{reason}")
