"""Optimization catalog: tier model, categories, and pure access functions.

The table below is the single declaration order used everywhere a stable
ordering of optimization keys is needed (compiled sections, config blocks,
shared payloads).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from loadout.errors import CatalogError
from loadout.models import CATEGORIES, Category, Tier

TIER_PRIORITY: dict[Tier, int] = {
    "safe": 0,
    "caution": 1,
    "risky": 2,
    "ludicrous": 3,
}

# Keys never pulled in by bulk selection (select-all, presets).
MANUAL_OPT_IN_KEYS = frozenset({"process_mitigation"})


@dataclass(frozen=True, slots=True)
class OptimizationDef:
    key: str
    tier: Tier
    category: Category
    label: str
    default_checked: bool = False


def _tier(tier: Tier, *rows: tuple) -> tuple[OptimizationDef, ...]:
    return tuple(OptimizationDef(row[0], tier, row[1], row[2], *row[3:]) for row in rows)


SAFE = _tier(
    "safe",
    ("pagefile", "system", "Fixed Page File", True),
    ("fastboot", "system", "Disable Fast Startup", True),
    ("timer", "system", "Timer Resolution Tool", True),
    ("explorer_speed", "system", "Explorer Speed"),
    ("temp_purge", "system", "Purge Temp Files"),
    ("restore_point", "system", "Restore Point"),
    ("classic_menu", "system", "Classic Context Menu"),
    ("storage_sense", "system", "Storage Sense"),
    ("end_task", "system", "Taskbar End Task"),
    ("explorer_cleanup", "system", "Explorer Cleanup"),
    ("notifications_off", "system", "Quiet Notifications"),
    ("ps7_telemetry", "system", "PowerShell 7 Telemetry"),
    ("filesystem_perf", "system", "File System Performance"),
    ("power_plan", "power", "High Performance Power Plan", True),
    ("usb_power", "power", "USB Full Power", True),
    ("pcie_power", "power", "PCIe Full Power", True),
    ("usb_suspend", "power", "USB Hub Suspend Off"),
    ("min_processor_state", "power", "Minimum Processor State"),
    ("hibernation_disable", "power", "Hibernation Off"),
    ("dns", "network", "Fast DNS", True),
    ("nagle", "network", "Disable Nagle", True),
    ("rss_enable", "network", "Receive Side Scaling"),
    ("adapter_power", "network", "Network Adapter Power Saving Off"),
    ("mouse_accel", "input", "Disable Mouse Accel"),
    ("keyboard_response", "input", "Keyboard Response"),
    ("accessibility_shortcuts", "input", "Accessibility Shortcuts Off"),
    ("input_buffer", "input", "Input Buffer Size"),
    ("display_perf", "display", "Visual Performance"),
    ("multiplane_overlay", "display", "MPO Off"),
    ("gamedvr", "display", "Game DVR Off", True),
    ("game_mode", "display", "Game Mode On"),
    ("dwm_perf", "display", "Desktop Window Manager Tweaks"),
    ("background_apps", "privacy", "Background Apps", True),
    ("edge_debloat", "privacy", "Edge Debloat", True),
    ("copilot_disable", "privacy", "Disable Copilot", True),
    ("razer_block", "privacy", "Block Razer Services"),
    ("delivery_opt", "privacy", "Delivery Optimization Off"),
    ("wer_disable", "privacy", "Error Reporting Off"),
    ("wifi_sense", "privacy", "Wi-Fi Sense Off"),
    ("spotlight_disable", "privacy", "Spotlight Off"),
    ("feedback_disable", "privacy", "Feedback Prompts Off"),
    ("clipboard_sync", "privacy", "Clipboard Sync Off"),
    ("audio_enhancements", "audio", "Audio Enhancements Off", True),
    ("audio_communications", "audio", "Communications Ducking Off"),
    ("audio_system_sounds", "audio", "System Sounds Off"),
)

CAUTION = _tier(
    "caution",
    ("msi_mode", "system", "MSI Mode"),
    ("hpet", "system", "HPET Off"),
    ("game_bar", "display", "Game Bar Off"),
    ("hags", "display", "HAGS On"),
    ("fso_disable", "display", "Fullscreen Optimizations Off"),
    ("ultimate_perf", "power", "Ultimate Performance"),
    ("services_trim", "system", "Trim Services"),
    ("disk_cleanup", "system", "Deep Disk Cleanup"),
    ("wpbt_disable", "system", "WPBT Disable"),
    ("qos_gaming", "network", "QoS Gaming"),
    ("network_throttling", "network", "Network Throttling Off"),
    ("interrupt_affinity", "system", "Interrupt Affinity"),
    ("process_mitigation", "system", "Process Mitigations"),
    ("mmcss_gaming", "system", "MMCSS Gaming Profile"),
    ("scheduler_opt", "system", "Scheduler Quantum"),
    ("core_parking", "power", "Core Parking Off"),
    ("timer_registry", "system", "Global Timer Resolution"),
    ("rsc_disable", "network", "Receive Segment Coalescing Off"),
    ("sysmain_disable", "system", "SysMain Off"),
    ("services_search_off", "system", "Windows Search Off"),
    ("memory_gaming", "system", "Memory Management Tweaks"),
    ("power_throttle_off", "power", "Power Throttling Off"),
    ("priority_boost_off", "system", "Priority Boost Off"),
)

RISKY = _tier(
    "risky",
    ("privacy_tier1", "privacy", "Privacy Tier 1"),
    ("privacy_tier2", "privacy", "Privacy Tier 2"),
    ("privacy_tier3", "privacy", "Privacy Tier 3"),
    ("bloatware", "system", "Remove Bloatware"),
    ("ipv4_prefer", "network", "Prefer IPv4"),
    ("teredo_disable", "network", "Teredo Off"),
    ("native_nvme", "system", "Native NVMe"),
    ("smt_disable", "system", "SMT/HT Off"),
    ("audio_exclusive", "audio", "Audio Exclusive Mode"),
    ("tcp_optimizer", "network", "TCP Optimizer"),
)

LUDICROUS = _tier(
    "ludicrous",
    ("spectre_meltdown_off", "system", "Spectre/Meltdown Mitigations Off"),
    ("core_isolation_off", "system", "Core Isolation Off"),
    ("kernel_mitigations_off", "system", "Kernel Mitigations Off"),
    ("dep_off", "system", "DEP Off"),
    ("background_polling", "power", "Processor Idle Off"),
    ("amd_ulps_disable", "display", "AMD ULPS Off"),
    ("nvidia_p0_state", "display", "NVIDIA P0 State Lock"),
    ("network_binding_strip", "network", "Strip Network Bindings"),
)

ALL_OPTIMIZATIONS: tuple[OptimizationDef, ...] = SAFE + CAUTION + RISKY + LUDICROUS

_BY_KEY: dict[str, OptimizationDef] = {opt.key: opt for opt in ALL_OPTIMIZATIONS}
_DECLARATION_INDEX: dict[str, int] = {opt.key: i for i, opt in enumerate(ALL_OPTIMIZATIONS)}

OPTIMIZATION_KEYS: tuple[str, ...] = tuple(_BY_KEY)


def is_optimization_key(value: object) -> bool:
    return isinstance(value, str) and value in _BY_KEY


def find_optimization(key: str) -> OptimizationDef | None:
    return _BY_KEY.get(key)


def tier_of(key: str) -> Tier | None:
    opt = _BY_KEY.get(key)
    return opt.tier if opt is not None else None


def by_tier(tier: Tier) -> tuple[OptimizationDef, ...]:
    return tuple(opt for opt in ALL_OPTIMIZATIONS if opt.tier == tier)


def by_category(category: Category) -> tuple[OptimizationDef, ...]:
    return tuple(opt for opt in ALL_OPTIMIZATIONS if opt.category == category)


def lookup(tier: Tier, category: Category) -> tuple[OptimizationDef, ...]:
    return tuple(opt for opt in ALL_OPTIMIZATIONS if opt.tier == tier and opt.category == category)


def categories_for_tier(tier: Tier) -> tuple[Category, ...]:
    present = {opt.category for opt in ALL_OPTIMIZATIONS if opt.tier == tier}
    return tuple(category for category in CATEGORIES if category in present)


def default_keys() -> tuple[str, ...]:
    return tuple(opt.key for opt in ALL_OPTIMIZATIONS if opt.default_checked)


def declaration_order(keys: Iterable[str]) -> tuple[str, ...]:
    """Known keys from ``keys`` in catalog declaration order; unknown keys are dropped."""
    known = {key for key in keys if key in _DECLARATION_INDEX}
    return tuple(sorted(known, key=_DECLARATION_INDEX.__getitem__))


def classify_risk(selection: Iterable[str]) -> Tier:
    """Highest-priority tier among the selected keys; ``safe`` when nothing risky is selected."""
    highest: Tier = "safe"
    for key in selection:
        tier = tier_of(key)
        if tier is not None and TIER_PRIORITY[tier] > TIER_PRIORITY[highest]:
            highest = tier
            if highest == "ludicrous":
                break
    return highest


def requires_restore_point(selection: Iterable[str]) -> bool:
    return TIER_PRIORITY[classify_risk(selection)] >= TIER_PRIORITY["caution"]


def requires_double_confirm(key: str) -> bool:
    tier = tier_of(key)
    return tier is not None and TIER_PRIORITY[tier] >= TIER_PRIORITY["risky"]


def is_manual_opt_in_only(key: str) -> bool:
    return key in MANUAL_OPT_IN_KEYS or tier_of(key) == "ludicrous"


def count_by_tier(selection: Iterable[str]) -> dict[Tier, int]:
    counts: dict[Tier, int] = dict.fromkeys(TIER_PRIORITY, 0)
    for key in set(selection):
        tier = tier_of(key)
        if tier is not None:
            counts[tier] += 1
    return counts


def _check_catalog() -> None:
    if len(_BY_KEY) != len(ALL_OPTIMIZATIONS):
        raise CatalogError("Duplicate optimization key in catalog.")
    for opt in LUDICROUS:
        if opt.default_checked:
            raise CatalogError(
                "Ludicrous optimizations must not be default-checked.",
                context={"key": opt.key},
            )


_check_catalog()
