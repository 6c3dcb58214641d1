"""Permanent stable-id assignments for every shareable domain value.

Ids are public API: once shipped in a share token an id keeps its meaning
forever. To retire a value, keep its entry and set ``retired`` to the ISO
date it was removed; never reuse the id. New values take the next
sequential id (``StableIdTable.next_id``) whatever their tier. The
optimization ids up to 107 are grouped in legacy tier blocks (1-49 safe,
50-79 caution, 80-99 risky, 100+ ludicrous) for history only.
"""

from __future__ import annotations

from loadout.errors import RegistryError
from loadout.registry.audit import audit_registry, has_errors
from loadout.registry.ledger import LedgerEntry, StableIdRegistry, StableIdTable

E = LedgerEntry

CPU_LEDGER = (E(1, "amd_x3d"), E(2, "amd"), E(3, "intel"))

GPU_LEDGER = (E(1, "nvidia"), E(2, "amd"), E(3, "intel"))

DNS_LEDGER = (
    E(1, "cloudflare"),
    E(2, "google"),
    E(3, "quad9"),
    E(4, "opendns"),
    E(5, "adguard"),
)

PERIPHERAL_LEDGER = (
    E(1, "logitech"),
    E(2, "razer"),
    E(3, "corsair"),
    E(4, "steelseries"),
    E(5, "asus"),
    E(6, "wooting"),
)

MONITOR_LEDGER = (E(1, "dell"), E(2, "lg"), E(3, "hp"))

PRESET_LEDGER = (
    E(1, "benchmarker"),
    E(2, "pro_gamer"),
    E(3, "streamer"),
    E(4, "gamer"),
)

OPTIMIZATION_LEDGER = (
    # Safe
    E(1, "pagefile"),
    E(2, "fastboot"),
    E(3, "timer"),
    E(4, "power_plan"),
    E(5, "usb_power"),
    E(6, "pcie_power"),
    E(7, "dns"),
    E(8, "nagle"),
    E(9, "audio_enhancements"),
    E(10, "gamedvr"),
    E(11, "background_apps"),
    E(12, "edge_debloat"),
    E(13, "copilot_disable"),
    E(14, "explorer_speed"),
    E(15, "temp_purge"),
    E(16, "razer_block"),
    E(17, "restore_point"),
    E(18, "classic_menu"),
    E(19, "storage_sense"),
    E(20, "display_perf"),
    E(21, "end_task"),
    E(22, "explorer_cleanup"),
    E(23, "notifications_off"),
    E(24, "ps7_telemetry"),
    E(25, "multiplane_overlay"),
    E(26, "mouse_accel"),
    E(27, "usb_suspend"),
    E(28, "keyboard_response"),
    E(29, "game_mode"),
    E(30, "min_processor_state"),
    E(31, "hibernation_disable"),
    E(32, "rss_enable"),
    E(33, "adapter_power"),
    E(34, "delivery_opt"),
    E(35, "wer_disable"),
    E(36, "wifi_sense"),
    E(37, "spotlight_disable"),
    E(38, "feedback_disable"),
    E(39, "clipboard_sync"),
    E(40, "accessibility_shortcuts"),
    E(41, "audio_communications"),
    E(42, "audio_system_sounds"),
    E(43, "input_buffer"),
    E(44, "filesystem_perf"),
    E(45, "dwm_perf"),
    # Caution
    E(50, "msi_mode"),
    E(51, "hpet"),
    E(52, "game_bar"),
    E(53, "hags"),
    E(54, "fso_disable"),
    E(55, "ultimate_perf"),
    E(56, "services_trim"),
    E(57, "disk_cleanup"),
    E(58, "wpbt_disable"),
    E(59, "qos_gaming"),
    E(60, "network_throttling"),
    E(61, "interrupt_affinity"),
    E(62, "process_mitigation"),
    E(63, "mmcss_gaming"),
    E(64, "scheduler_opt"),
    E(65, "core_parking"),
    E(66, "timer_registry"),
    E(67, "rsc_disable"),
    E(68, "sysmain_disable"),
    E(69, "services_search_off"),
    E(70, "memory_gaming"),
    E(71, "power_throttle_off"),
    E(72, "priority_boost_off"),
    # Risky
    E(80, "privacy_tier1"),
    E(81, "privacy_tier2"),
    E(82, "privacy_tier3"),
    E(83, "bloatware"),
    E(84, "ipv4_prefer"),
    E(85, "teredo_disable"),
    E(86, "native_nvme"),
    E(87, "smt_disable"),
    E(88, "audio_exclusive"),
    E(89, "tcp_optimizer"),
    # Ludicrous
    E(100, "spectre_meltdown_off"),
    E(101, "core_isolation_off"),
    E(102, "kernel_mitigations_off"),
    E(103, "dep_off"),
    E(104, "background_polling"),
    E(105, "amd_ulps_disable"),
    E(106, "nvidia_p0_state"),
    E(107, "network_binding_strip"),
)


def build_registry() -> StableIdRegistry:
    return StableIdRegistry(
        cpu=StableIdTable.from_ledger("cpu", CPU_LEDGER),
        gpu=StableIdTable.from_ledger("gpu", GPU_LEDGER),
        dns=StableIdTable.from_ledger("dns", DNS_LEDGER),
        peripheral=StableIdTable.from_ledger("peripheral", PERIPHERAL_LEDGER),
        monitor=StableIdTable.from_ledger("monitor", MONITOR_LEDGER),
        preset=StableIdTable.from_ledger("preset", PRESET_LEDGER),
        optimization=StableIdTable.from_ledger("optimization", OPTIMIZATION_LEDGER),
    )


def ensure_consistent(registry: StableIdRegistry) -> StableIdRegistry:
    """Raise ``RegistryError`` if the audit finds any error-level issue."""
    issues = audit_registry(registry)
    if has_errors(issues):
        errors = [str(issue) for issue in issues if issue.level == "error"]
        raise RegistryError(
            "Stable-id registry is inconsistent.",
            hint="Ids are permanent: retire values instead of reassigning their ids.",
            context={"errors": "; ".join(errors)},
        )
    return registry


REGISTRY = ensure_consistent(build_registry())
