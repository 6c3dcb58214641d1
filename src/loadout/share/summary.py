"""Human-facing share formats: text summary, compact query, one-liner command."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlencode

from loadout.catalog.hardware import CPU_LABELS, GPU_LABELS, PERIPHERAL_LABELS, resolve_dns
from loadout.catalog.optimizations import count_by_tier
from loadout.models import BuildToEncode
from loadout.policy import DEFAULT_POLICY, partition_eligible
from loadout.registry import REGISTRY, StableIdTable
from loadout.share.codec import DEFAULT_SHARE_CONFIG, ShareConfig, encode_with_meta

RUN_SCRIPT_PATH = "run.ps1"
ENV_VARIABLE = "LOADOUT"


@dataclass(frozen=True, slots=True)
class OneLiner:
    command: str
    url: str
    length: int
    too_long: bool
    blocked_count: int = 0


def text_summary(build: BuildToEncode, *, config: ShareConfig = DEFAULT_SHARE_CONFIG) -> str:
    """Plain-text build summary for forum posts, ending with the import URL."""
    lines = ["Loadout Build", "-" * 40]
    hardware = [
        label
        for label in (
            CPU_LABELS.get(build.cpu) if build.cpu else None,
            GPU_LABELS.get(build.gpu) if build.gpu else None,
        )
        if label
    ]
    if hardware:
        lines.append(f"Hardware: {' + '.join(hardware)}")
    if build.dns_provider:
        lines.append(f"DNS: {resolve_dns(build.dns_provider).name}")
    if build.preset:
        lines.append(f"Preset: {build.preset}")
    if build.peripherals:
        names = ", ".join(PERIPHERAL_LABELS.get(item, item) for item in build.peripherals)
        lines.append(f"Peripherals: {names}")
    if build.optimizations:
        counts = count_by_tier(build.optimizations)
        breakdown = ", ".join(f"{tier} {count}" for tier, count in counts.items() if count)
        lines.append(f"Optimizations: {len(set(build.optimizations))} enabled ({breakdown})")
    if build.packages:
        lines.append(f"Software: {len(set(build.packages))} packages")
    lines.append("")
    lines.append(f"Import: {encode_with_meta(build, config=config).url}")
    return "\n".join(lines)


def encode_compact(build: BuildToEncode) -> str:
    """Query string a script can parse without decompression: ``c=1&g=1&o=1,2,3&s=steam``.

    Ludicrous optimizations are never included.
    """
    params: list[tuple[str, str]] = []
    _add_scalar(params, "c", build.cpu, REGISTRY.cpu)
    _add_scalar(params, "g", build.gpu, REGISTRY.gpu)
    _add_scalar(params, "d", build.dns_provider, REGISTRY.dns)
    _add_ids(params, "p", build.peripherals, REGISTRY.peripheral)
    _add_ids(params, "m", build.monitor_software, REGISTRY.monitor)
    eligible, _ = partition_eligible(dict.fromkeys(build.optimizations), policy=DEFAULT_POLICY)
    _add_ids(params, "o", eligible, REGISTRY.optimization, sort=True)
    if build.packages:
        params.append(("s", ",".join(dict.fromkeys(build.packages))))
    return urlencode(params, safe=",")


def one_liner(build: BuildToEncode, *, config: ShareConfig = DEFAULT_SHARE_CONFIG) -> OneLiner:
    _, blocked = partition_eligible(build.optimizations, policy=DEFAULT_POLICY)
    url = f"{config.base_url.rstrip('/')}/{RUN_SCRIPT_PATH}"
    query = encode_compact(build)
    command = f"$env:{ENV_VARIABLE}='{query}'; irm {url} | iex" if query else f"irm {url} | iex"
    return OneLiner(
        command=command,
        url=url,
        length=len(command),
        too_long=len(command) > config.url_length_warning,
        blocked_count=len(set(blocked)),
    )


def _add_scalar(
    params: list[tuple[str, str]], name: str, value: str | None, table: StableIdTable
) -> None:
    if value is None:
        return
    id_ = table.id_for(value)
    if id_ is not None:
        params.append((name, str(id_)))


def _add_ids(
    params: list[tuple[str, str]],
    name: str,
    values: Iterable[str],
    table: StableIdTable,
    *,
    sort: bool = False,
) -> None:
    ids = [id_ for id_ in map(table.id_for, dict.fromkeys(values)) if id_ is not None]
    if sort:
        ids.sort()
    if ids:
        params.append((name, ",".join(str(id_) for id_ in ids)))
