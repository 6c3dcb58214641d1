"""Selection document parser (the JSON consumed by the command line)."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loadout.catalog.hardware import DEFAULT_DNS_PROVIDER
from loadout.catalog.optimizations import is_optimization_key
from loadout.catalog.presets import optimizations_for_preset
from loadout.catalog.software import is_package_key
from loadout.errors import ValidationError
from loadout.models import (
    CPU_TYPES,
    DNS_PROVIDERS,
    GPU_TYPES,
    MONITOR_SOFTWARE_TYPES,
    PERIPHERAL_TYPES,
    PRESET_TYPES,
    BuildToEncode,
    DnsProvider,
    HardwareProfile,
    PresetType,
    SelectionState,
    is_cpu_type,
    is_dns_provider,
    is_gpu_type,
    is_monitor_software_type,
    is_peripheral_type,
    is_preset_type,
)


@dataclass(frozen=True, slots=True)
class SelectionDocument:
    selection: SelectionState
    dns_provider: DnsProvider = DEFAULT_DNS_PROVIDER
    preset: PresetType | None = None

    def to_build(self) -> BuildToEncode:
        return BuildToEncode.from_selection(
            self.selection, dns_provider=self.dns_provider, preset=self.preset
        )


def parse_selection(raw: str | Mapping[str, Any]) -> SelectionDocument:
    """Parse a selection document.

    A ``preset`` without an ``optimizations`` list selects the preset's base set.
    """
    if isinstance(raw, str):
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError("Invalid selection JSON.", hint=str(exc)) from exc
    else:
        payload = raw
    if not isinstance(payload, Mapping):
        raise ValidationError("Invalid selection payload type.")

    cpu = _optional_choice(payload, "cpu", is_cpu_type, CPU_TYPES) or "amd_x3d"
    gpu = _optional_choice(payload, "gpu", is_gpu_type, GPU_TYPES) or "nvidia"
    dns = _optional_choice(payload, "dnsProvider", is_dns_provider, DNS_PROVIDERS)
    preset = _optional_choice(payload, "preset", is_preset_type, PRESET_TYPES)

    if "optimizations" not in payload and preset is not None:
        optimizations = list(optimizations_for_preset(preset))
    else:
        optimizations = _string_list(payload, "optimizations")
    unknown = [key for key in optimizations if not is_optimization_key(key)]
    if unknown:
        raise ValidationError(
            "Selection references unknown optimizations.",
            context={"keys": ", ".join(unknown)},
        )

    packages = [key.lower() for key in _string_list(payload, "packages")]
    invalid = [key for key in packages if not is_package_key(key)]
    if invalid:
        raise ValidationError("Invalid package key in selection.", context={"keys": ", ".join(invalid)})

    hardware = HardwareProfile(
        cpu=cpu,
        gpu=gpu,
        peripherals=tuple(
            _choices(payload, "peripherals", is_peripheral_type, PERIPHERAL_TYPES)
        ),
        monitor_software=tuple(
            _choices(payload, "monitorSoftware", is_monitor_software_type, MONITOR_SOFTWARE_TYPES)
        ),
    )
    return SelectionDocument(
        selection=SelectionState.create(
            hardware=hardware, optimizations=optimizations, packages=packages
        ),
        dns_provider=dns or DEFAULT_DNS_PROVIDER,
        preset=preset,
    )


def read_selection(path: str | Path) -> SelectionDocument:
    selection_path = Path(path)
    try:
        raw = selection_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ValidationError(
            "Selection file does not exist.",
            context={"path": str(selection_path)},
        ) from exc
    return parse_selection(raw)


def _optional_choice(
    payload: Mapping[str, Any],
    key: str,
    guard: Callable[[object], bool],
    choices: tuple[str, ...],
) -> Any:
    value = payload.get(key)
    if value is None:
        return None
    if not guard(value):
        raise ValidationError(
            f"Invalid selection `{key}` value.",
            hint=f"Expected one of: {', '.join(choices)}.",
            context={key: str(value)},
        )
    return value


def _choices(
    payload: Mapping[str, Any],
    key: str,
    guard: Callable[[object], bool],
    choices: tuple[str, ...],
) -> list[Any]:
    values = _string_list(payload, key)
    for value in values:
        if not guard(value):
            raise ValidationError(
                f"Invalid selection `{key}` entry.",
                hint=f"Expected one of: {', '.join(choices)}.",
                context={key: value},
            )
    return values


def _string_list(payload: Mapping[str, Any], key: str) -> list[str]:
    value = payload.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"Invalid selection `{key}` value.", hint="Expected a list of strings.")
    return list(value)
