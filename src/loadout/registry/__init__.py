"""Stable-id registry: permanent integer ids for shareable values."""

from __future__ import annotations

from .audit import AuditIssue, audit_registry, audit_table, has_errors
from .ledger import Deprecation, LedgerEntry, StableIdRegistry, StableIdTable
from .stable_ids import REGISTRY, build_registry, ensure_consistent

__all__ = [
    "REGISTRY",
    "AuditIssue",
    "Deprecation",
    "LedgerEntry",
    "StableIdRegistry",
    "StableIdTable",
    "audit_registry",
    "audit_table",
    "build_registry",
    "ensure_consistent",
    "has_errors",
]
