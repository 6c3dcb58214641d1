"""Core typed dataclasses for hardware profiles, selections, and shared builds."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

CpuType = Literal["amd_x3d", "amd", "intel"]
GpuType = Literal["nvidia", "amd", "intel"]
DnsProvider = Literal["cloudflare", "google", "quad9", "opendns", "adguard"]
PeripheralType = Literal["logitech", "razer", "corsair", "steelseries", "asus", "wooting"]
MonitorSoftwareType = Literal["dell", "lg", "hp"]
PresetType = Literal["benchmarker", "pro_gamer", "streamer", "gamer"]
Tier = Literal["safe", "caution", "risky", "ludicrous"]
Category = Literal["system", "power", "network", "input", "display", "privacy", "audio"]
PackageCategory = Literal[
    "launcher",
    "gaming",
    "streaming",
    "monitoring",
    "browser",
    "media",
    "utility",
    "rgb",
    "dev",
    "runtime",
    "benchmark",
]

CPU_TYPES: tuple[CpuType, ...] = ("amd_x3d", "amd", "intel")
GPU_TYPES: tuple[GpuType, ...] = ("nvidia", "amd", "intel")
DNS_PROVIDERS: tuple[DnsProvider, ...] = ("cloudflare", "google", "quad9", "opendns", "adguard")
PERIPHERAL_TYPES: tuple[PeripheralType, ...] = (
    "logitech",
    "razer",
    "corsair",
    "steelseries",
    "asus",
    "wooting",
)
MONITOR_SOFTWARE_TYPES: tuple[MonitorSoftwareType, ...] = ("dell", "lg", "hp")
PRESET_TYPES: tuple[PresetType, ...] = ("benchmarker", "pro_gamer", "streamer", "gamer")
TIERS: tuple[Tier, ...] = ("safe", "caution", "risky", "ludicrous")
CATEGORIES: tuple[Category, ...] = (
    "system",
    "power",
    "network",
    "input",
    "display",
    "privacy",
    "audio",
)
PACKAGE_CATEGORIES: tuple[PackageCategory, ...] = (
    "launcher",
    "gaming",
    "streaming",
    "monitoring",
    "browser",
    "media",
    "utility",
    "rgb",
    "dev",
    "runtime",
    "benchmark",
)


def is_cpu_type(value: object) -> bool:
    return isinstance(value, str) and value in CPU_TYPES


def is_gpu_type(value: object) -> bool:
    return isinstance(value, str) and value in GPU_TYPES


def is_dns_provider(value: object) -> bool:
    return isinstance(value, str) and value in DNS_PROVIDERS


def is_peripheral_type(value: object) -> bool:
    return isinstance(value, str) and value in PERIPHERAL_TYPES


def is_monitor_software_type(value: object) -> bool:
    return isinstance(value, str) and value in MONITOR_SOFTWARE_TYPES


def is_preset_type(value: object) -> bool:
    return isinstance(value, str) and value in PRESET_TYPES


def _ordered_unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


@dataclass(frozen=True, slots=True)
class HardwareProfile:
    cpu: CpuType = "amd_x3d"
    gpu: GpuType = "nvidia"
    peripherals: tuple[PeripheralType, ...] = ()
    monitor_software: tuple[MonitorSoftwareType, ...] = ()

    def __post_init__(self) -> None:
        # Ordered sets: keep first occurrence of each brand.
        object.__setattr__(self, "peripherals", _ordered_unique(self.peripherals))
        object.__setattr__(self, "monitor_software", _ordered_unique(self.monitor_software))


@dataclass(frozen=True, slots=True)
class SelectionState:
    hardware: HardwareProfile = field(default_factory=HardwareProfile)
    optimizations: frozenset[str] = frozenset()
    packages: frozenset[str] = frozenset()
    missing_packages: frozenset[str] = frozenset()

    @classmethod
    def create(
        cls,
        *,
        hardware: HardwareProfile | None = None,
        optimizations: Iterable[str] = (),
        packages: Iterable[str] = (),
        missing_packages: Iterable[str] = (),
    ) -> SelectionState:
        return cls(
            hardware=hardware or HardwareProfile(),
            optimizations=frozenset(optimizations),
            packages=frozenset(packages),
            missing_packages=frozenset(missing_packages),
        )


@dataclass(frozen=True, slots=True)
class BuildToEncode:
    cpu: CpuType | None = None
    gpu: GpuType | None = None
    dns_provider: DnsProvider | None = None
    peripherals: tuple[PeripheralType, ...] = ()
    monitor_software: tuple[MonitorSoftwareType, ...] = ()
    optimizations: tuple[str, ...] = ()
    packages: tuple[str, ...] = ()
    preset: PresetType | None = None

    @classmethod
    def from_selection(
        cls,
        selection: SelectionState,
        *,
        dns_provider: DnsProvider | None = None,
        preset: PresetType | None = None,
    ) -> BuildToEncode:
        return cls(
            cpu=selection.hardware.cpu,
            gpu=selection.hardware.gpu,
            dns_provider=dns_provider,
            peripherals=selection.hardware.peripherals,
            monitor_software=selection.hardware.monitor_software,
            optimizations=tuple(sorted(selection.optimizations)),
            packages=tuple(sorted(selection.packages)),
            preset=preset,
        )


@dataclass(frozen=True, slots=True)
class DecodedBuild:
    cpu: CpuType | None = None
    gpu: GpuType | None = None
    dns_provider: DnsProvider | None = None
    peripherals: tuple[PeripheralType, ...] = ()
    monitor_software: tuple[MonitorSoftwareType, ...] = ()
    optimizations: tuple[str, ...] = ()
    packages: tuple[str, ...] = ()
    preset: PresetType | None = None
    skipped_count: int = 0
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "cpu": self.cpu,
            "gpu": self.gpu,
            "dnsProvider": self.dns_provider,
            "peripherals": list(self.peripherals),
            "monitorSoftware": list(self.monitor_software),
            "optimizations": list(self.optimizations),
            "packages": list(self.packages),
            "preset": self.preset,
            "skippedCount": self.skipped_count,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True, slots=True)
class DecodeResult:
    success: bool
    build: DecodedBuild | None = None
    error: str | None = None

    @classmethod
    def ok(cls, build: DecodedBuild) -> DecodeResult:
        return cls(success=True, build=build)

    @classmethod
    def fail(cls, error: str) -> DecodeResult:
        return cls(success=False, error=error)


@dataclass(frozen=True, slots=True)
class EncodeResult:
    token: str
    url: str
    url_length: int
    url_too_long: bool
    blocked_count: int = 0
    dropped_keys: tuple[str, ...] = ()
