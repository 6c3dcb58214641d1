"""Hardware lookup tables: brand software packages, DNS servers, display labels."""

from __future__ import annotations

from dataclasses import dataclass

from loadout.models import CpuType, DnsProvider, GpuType, MonitorSoftwareType, PeripheralType

PERIPHERAL_TO_PACKAGE: dict[PeripheralType, str | None] = {
    "logitech": "logitechghub",
    "razer": "razersynapse",
    "corsair": "icue",
    "steelseries": "steelseriesgg",
    "asus": "armourycrate",
    "wooting": "wooting",
}

MONITOR_TO_PACKAGE: dict[MonitorSoftwareType, str | None] = {
    "dell": "delldisplaymanager",
    "lg": "lgonscreencontrol",
    "hp": "hpdisplaycenter",
}

CPU_LABELS: dict[CpuType, str] = {
    "amd_x3d": "AMD X3D",
    "amd": "AMD",
    "intel": "Intel",
}

GPU_LABELS: dict[GpuType, str] = {
    "nvidia": "NVIDIA",
    "amd": "AMD",
    "intel": "Intel",
}

PERIPHERAL_LABELS: dict[PeripheralType, str] = {
    "logitech": "Logitech",
    "razer": "Razer",
    "corsair": "Corsair",
    "steelseries": "SteelSeries",
    "asus": "ASUS ROG",
    "wooting": "Wooting",
}


@dataclass(frozen=True, slots=True)
class DnsServers:
    name: str
    primary: str
    secondary: str


DEFAULT_DNS_PROVIDER: DnsProvider = "cloudflare"

DNS_SERVERS: dict[str, DnsServers] = {
    "cloudflare": DnsServers("Cloudflare", "1.1.1.1", "1.0.0.1"),
    "google": DnsServers("Google", "8.8.8.8", "8.8.4.4"),
    "quad9": DnsServers("Quad9", "9.9.9.9", "149.112.112.112"),
    "opendns": DnsServers("OpenDNS", "208.67.222.222", "208.67.220.220"),
    "adguard": DnsServers("AdGuard", "94.140.14.14", "94.140.15.15"),
}


def resolve_dns(provider: str | None) -> DnsServers:
    """Servers for ``provider``; unknown providers fall back to the default entry."""
    if provider is None:
        return DNS_SERVERS[DEFAULT_DNS_PROVIDER]
    return DNS_SERVERS.get(provider, DNS_SERVERS[DEFAULT_DNS_PROVIDER])


def brand_packages(
    peripherals: tuple[PeripheralType, ...],
    monitor_software: tuple[MonitorSoftwareType, ...],
) -> tuple[str, ...]:
    """Package keys implied by selected brands, in brand order; null mappings skipped."""
    keys: list[str] = []
    for peripheral in peripherals:
        package = PERIPHERAL_TO_PACKAGE.get(peripheral)
        if package:
            keys.append(package)
    for monitor in monitor_software:
        package = MONITOR_TO_PACKAGE.get(monitor)
        if package:
            keys.append(package)
    return tuple(dict.fromkeys(keys))
