"""Optimization catalog, presets, hardware tables, and software catalog."""

from __future__ import annotations

from .hardware import (
    DNS_SERVERS,
    MONITOR_TO_PACKAGE,
    PERIPHERAL_TO_PACKAGE,
    DnsServers,
    brand_packages,
    resolve_dns,
)
from .optimizations import (
    ALL_OPTIMIZATIONS,
    OPTIMIZATION_KEYS,
    TIER_PRIORITY,
    OptimizationDef,
    by_category,
    by_tier,
    categories_for_tier,
    classify_risk,
    count_by_tier,
    declaration_order,
    default_keys,
    find_optimization,
    is_manual_opt_in_only,
    is_optimization_key,
    lookup,
    requires_double_confirm,
    requires_restore_point,
    tier_of,
)
from .presets import MINIMAL_DEFAULT, PRESETS, optimizations_for_preset
from .software import (
    PackageValidation,
    SoftwareCatalog,
    SoftwarePackage,
    parse_software_catalog,
    read_software_catalog,
    validate_packages,
)

__all__ = [
    "ALL_OPTIMIZATIONS",
    "DNS_SERVERS",
    "MINIMAL_DEFAULT",
    "MONITOR_TO_PACKAGE",
    "OPTIMIZATION_KEYS",
    "PERIPHERAL_TO_PACKAGE",
    "PRESETS",
    "TIER_PRIORITY",
    "DnsServers",
    "OptimizationDef",
    "PackageValidation",
    "SoftwareCatalog",
    "SoftwarePackage",
    "brand_packages",
    "by_category",
    "by_tier",
    "categories_for_tier",
    "classify_risk",
    "count_by_tier",
    "declaration_order",
    "default_keys",
    "find_optimization",
    "is_manual_opt_in_only",
    "is_optimization_key",
    "lookup",
    "optimizations_for_preset",
    "parse_software_catalog",
    "read_software_catalog",
    "requires_double_confirm",
    "requires_restore_point",
    "resolve_dns",
    "tier_of",
    "validate_packages",
]
