"""Named preset base sets."""

from __future__ import annotations

from loadout.catalog.optimizations import declaration_order, is_optimization_key, tier_of
from loadout.errors import CatalogError
from loadout.models import PresetType

MINIMAL_DEFAULT: tuple[str, ...] = (
    "pagefile",
    "fastboot",
    "restore_point",
    "power_plan",
    "usb_power",
    "pcie_power",
    "audio_enhancements",
)

PRESETS: dict[PresetType, tuple[str, ...]] = {
    "gamer": (
        "pagefile",
        "fastboot",
        "restore_point",
        "power_plan",
        "usb_power",
        "pcie_power",
        "dns",
        "nagle",
        "gamedvr",
        "background_apps",
        "edge_debloat",
        "copilot_disable",
        "audio_enhancements",
        "timer",
        "end_task",
    ),
    # No gamedvr: streamers need capture.
    "streamer": (
        "pagefile",
        "fastboot",
        "restore_point",
        "power_plan",
        "usb_power",
        "pcie_power",
        "dns",
        "nagle",
        "edge_debloat",
        "copilot_disable",
        "audio_enhancements",
    ),
    "pro_gamer": (
        "pagefile",
        "fastboot",
        "timer",
        "restore_point",
        "notifications_off",
        "power_plan",
        "usb_power",
        "pcie_power",
        "usb_suspend",
        "dns",
        "nagle",
        "mouse_accel",
        "display_perf",
        "gamedvr",
        "background_apps",
        "edge_debloat",
        "copilot_disable",
        "audio_enhancements",
        "msi_mode",
        "fso_disable",
        "ultimate_perf",
        "services_trim",
        "wpbt_disable",
        "qos_gaming",
        "network_throttling",
        "interrupt_affinity",
        "keyboard_response",
        "end_task",
    ),
    "benchmarker": (
        "pagefile",
        "fastboot",
        "timer",
        "explorer_speed",
        "temp_purge",
        "restore_point",
        "classic_menu",
        "storage_sense",
        "end_task",
        "explorer_cleanup",
        "notifications_off",
        "ps7_telemetry",
        "power_plan",
        "usb_power",
        "pcie_power",
        "usb_suspend",
        "dns",
        "nagle",
        "mouse_accel",
        "keyboard_response",
        "display_perf",
        "multiplane_overlay",
        "gamedvr",
        "background_apps",
        "edge_debloat",
        "copilot_disable",
        "audio_enhancements",
        "msi_mode",
        "hpet",
        "hags",
        "fso_disable",
        "ultimate_perf",
        "services_trim",
        "disk_cleanup",
        "wpbt_disable",
        "qos_gaming",
        "network_throttling",
        "interrupt_affinity",
        "privacy_tier1",
        "privacy_tier2",
        "privacy_tier3",
        "bloatware",
        "ipv4_prefer",
        "teredo_disable",
        "native_nvme",
        "smt_disable",
        "audio_exclusive",
        "tcp_optimizer",
    ),
}


def optimizations_for_preset(name: PresetType) -> tuple[str, ...]:
    """Preset base set in catalog declaration order."""
    try:
        keys = PRESETS[name]
    except KeyError as exc:
        raise CatalogError(
            f"Unknown preset '{name}'.",
            hint=f"Choose one of: {', '.join(PRESETS)}.",
        ) from exc
    return declaration_order(keys)


def _check_presets() -> None:
    for name, keys in {"minimal_default": MINIMAL_DEFAULT, **PRESETS}.items():
        for key in keys:
            if not is_optimization_key(key):
                raise CatalogError(
                    "Preset references an unknown optimization.",
                    context={"preset": name, "key": key},
                )
            if tier_of(key) == "ludicrous":
                raise CatalogError(
                    "Ludicrous optimizations must never be part of a preset.",
                    context={"preset": name, "key": key},
                )


_check_presets()
