"""Selection resolution: the intermediate plan consumed by the script emitters."""

from __future__ import annotations

from dataclasses import dataclass

from loadout.catalog.hardware import GPU_LABELS, DnsServers, brand_packages, resolve_dns
from loadout.catalog.optimizations import (
    classify_risk,
    declaration_order,
    requires_restore_point,
    tier_of,
)
from loadout.catalog.software import SoftwareCatalog, SoftwarePackage, validate_packages
from loadout.compiler.actions import (
    ACTION_PLANS,
    SECTION_ORDER,
    SECTION_TITLES,
    SPECIAL_KEYS,
    Action,
    ActivatePowerPlan,
    Notice,
    SectionName,
)
from loadout.models import HardwareProfile, SelectionState, Tier
from loadout.observability import StructuredLogger
from loadout.policy import DEFAULT_POLICY, Policy, partition_eligible

X3D_NOTICE = "AMD X3D detected - ensure CPPC is enabled in BIOS"


@dataclass(frozen=True, slots=True)
class PlannedAction:
    key: str | None
    action: Action


@dataclass(frozen=True, slots=True)
class SectionPlan:
    name: SectionName
    title: str
    entries: tuple[PlannedAction, ...] = ()

    def actions_for(self, key: str) -> tuple[Action, ...]:
        return tuple(entry.action for entry in self.entries if entry.key == key)


@dataclass(frozen=True, slots=True)
class ResolvedPackage:
    key: str
    package: SoftwarePackage


@dataclass(frozen=True, slots=True)
class ScriptPlan:
    hardware: HardwareProfile
    dns: DnsServers
    dns_provider: str
    optimizations: tuple[str, ...]
    blocked: tuple[str, ...]
    unmapped: tuple[str, ...]
    packages: tuple[ResolvedPackage, ...]
    missing_packages: tuple[str, ...]
    risk_profile: Tier
    restore_point_required: bool
    restore_point: bool
    sections: tuple[SectionPlan, ...]

    @property
    def has_ludicrous(self) -> bool:
        return any(tier_of(key) == "ludicrous" for key in self.optimizations)

    def section(self, name: SectionName) -> SectionPlan:
        for section in self.sections:
            if section.name == name:
                return section
        raise KeyError(name)


def plan_selection(
    selection: SelectionState,
    catalog: SoftwareCatalog,
    dns_provider: str = "cloudflare",
    *,
    policy: Policy = DEFAULT_POLICY,
    logger: StructuredLogger | None = None,
) -> ScriptPlan:
    """Resolve a selection into ordered sections, packages, and gating results.

    Optimization keys are visited in catalog declaration order so the plan
    (and every script rendered from it) does not depend on selection order.
    Ludicrous keys are dropped unless ``policy`` acknowledges them.
    """
    eligible, blocked = partition_eligible(
        declaration_order(selection.optimizations), policy=policy
    )
    for key in blocked:
        _log(logger, "Ludicrous optimization blocked by policy.", key=key, level="warning")

    unmapped = tuple(
        key for key in eligible if key not in ACTION_PLANS and key not in SPECIAL_KEYS
    )
    for key in unmapped:
        _log(logger, "Optimization has no action plan; skipped.", key=key, level="warning")

    sections = _plan_sections(selection.hardware, eligible, logger=logger)
    packages, missing = _resolve_packages(selection, catalog, logger=logger)

    restore_point_required = requires_restore_point(eligible)
    return ScriptPlan(
        hardware=selection.hardware,
        dns=resolve_dns(dns_provider),
        dns_provider=dns_provider,
        optimizations=eligible,
        blocked=blocked,
        unmapped=unmapped,
        packages=packages,
        missing_packages=missing,
        risk_profile=classify_risk(eligible),
        restore_point_required=restore_point_required,
        restore_point=restore_point_required or "restore_point" in eligible,
        sections=sections,
    )


def _plan_sections(
    hardware: HardwareProfile,
    keys: tuple[str, ...],
    *,
    logger: StructuredLogger | None,
) -> tuple[SectionPlan, ...]:
    selected = set(keys)
    entries: dict[SectionName, list[PlannedAction]] = {name: [] for name in SECTION_ORDER}
    seen: dict[SectionName, set[Action]] = {name: set() for name in SECTION_ORDER}

    if hardware.cpu == "amd_x3d":
        entries["performance"].append(PlannedAction(None, Notice(X3D_NOTICE, "info")))

    for key in keys:
        plan = ACTION_PLANS.get(key)
        if plan is None:
            continue
        superseding = [other for other in plan.superseded_by if other in selected]
        if superseding:
            _log(logger, f"Superseded by {', '.join(superseding)}.", key=key)
            continue

        bucket = entries[plan.section]
        if plan.requires_gpu is not None and hardware.gpu != plan.requires_gpu:
            message = f"{key} skipped: requires an {GPU_LABELS[plan.requires_gpu]} GPU"
            bucket.append(PlannedAction(key, Notice(message, "warn")))
            _log(
                logger,
                "Hardware-conditional optimization skipped.",
                key=key,
                level="warning",
                extra={"requires_gpu": plan.requires_gpu, "gpu": hardware.gpu},
            )
            continue
        if plan.danger is not None:
            bucket.append(PlannedAction(key, Notice(plan.danger, "danger")))
        for action in plan.actions:
            if action in seen[plan.section]:
                continue
            seen[plan.section].add(action)
            bucket.append(PlannedAction(key, action))

    for bucket in entries.values():
        # Plan activation switches SCHEME_CURRENT; apply it before any power sub-setting.
        bucket.sort(key=lambda entry: not isinstance(entry.action, ActivatePowerPlan))

    return tuple(
        SectionPlan(name=name, title=SECTION_TITLES[name], entries=tuple(entries[name]))
        for name in SECTION_ORDER
    )


def _resolve_packages(
    selection: SelectionState,
    catalog: SoftwareCatalog,
    *,
    logger: StructuredLogger | None,
) -> tuple[tuple[ResolvedPackage, ...], tuple[str, ...]]:
    explicit = validate_packages(sorted(selection.packages), catalog)
    for key in explicit.invalid:
        _log(logger, "Selected package missing from catalog.", key=key, level="warning")

    resolved = set(explicit.valid)
    hardware = selection.hardware
    for key in brand_packages(hardware.peripherals, hardware.monitor_software):
        if key in catalog:
            resolved.add(key)
        else:
            # Brand add-ons are best effort: never reported as missing.
            _log(logger, "Brand package not in catalog.", key=key)

    packages = sorted(
        (ResolvedPackage(key, catalog[key]) for key in resolved),
        key=lambda item: (item.package.name.casefold(), item.key),
    )
    missing = sorted(set(selection.missing_packages) | set(explicit.invalid))
    return tuple(packages), tuple(missing)


def _log(
    logger: StructuredLogger | None,
    message: str,
    *,
    key: str | None = None,
    level: str = "info",
    extra: dict[str, object] | None = None,
) -> None:
    if logger is None:
        return
    logger.log(
        operation="plan_selection",
        component="compiler",
        key=key,
        message=message,
        level=level,
        extra=extra,
    )
