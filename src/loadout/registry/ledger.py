"""Append-only stable-id ledger and the lookup tables built from it."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal

Domain = Literal["cpu", "gpu", "dns", "peripheral", "monitor", "preset", "optimization"]


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One permanent id assignment. ``retired`` is an ISO date once the value is gone."""

    id: int
    key: str
    retired: str | None = None
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class Deprecation:
    id: int
    former_value: str
    retired: str
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class StableIdTable:
    domain: Domain
    forward: Mapping[int, str | None]
    backward: Mapping[str, int]
    entries: tuple[LedgerEntry, ...] = ()
    deprecated: tuple[Deprecation, ...] = ()

    @classmethod
    def from_ledger(cls, domain: Domain, entries: tuple[LedgerEntry, ...]) -> StableIdTable:
        forward: dict[int, str | None] = {}
        backward: dict[str, int] = {}
        deprecated: list[Deprecation] = []
        for entry in entries:
            if entry.retired is not None:
                forward.setdefault(entry.id, None)
                deprecated.append(
                    Deprecation(
                        id=entry.id,
                        former_value=entry.key,
                        retired=entry.retired,
                        reason=entry.reason,
                    )
                )
                continue
            # First assignment wins; duplicates are reported by the audit.
            if entry.id not in forward:
                forward[entry.id] = entry.key
            backward.setdefault(entry.key, entry.id)
        return cls(
            domain=domain,
            forward=MappingProxyType(forward),
            backward=MappingProxyType(backward),
            entries=entries,
            deprecated=tuple(deprecated),
        )

    def id_for(self, value: str) -> int | None:
        return self.backward.get(value)

    def value_for(self, id_: object) -> str | None:
        if not isinstance(id_, int) or isinstance(id_, bool):
            return None
        return self.forward.get(id_)

    def is_retired(self, id_: int) -> bool:
        return id_ in self.forward and self.forward[id_] is None

    @property
    def next_id(self) -> int:
        ids = [entry.id for entry in self.entries] or list(self.forward)
        return max(ids, default=0) + 1


@dataclass(frozen=True, slots=True)
class StableIdRegistry:
    cpu: StableIdTable
    gpu: StableIdTable
    dns: StableIdTable
    peripheral: StableIdTable
    monitor: StableIdTable
    preset: StableIdTable
    optimization: StableIdTable

    def tables(self) -> tuple[StableIdTable, ...]:
        return (
            self.cpu,
            self.gpu,
            self.dns,
            self.peripheral,
            self.monitor,
            self.preset,
            self.optimization,
        )
