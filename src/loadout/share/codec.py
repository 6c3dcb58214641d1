"""Versioned share-token codec over the stable-id registry.

A token is ``<version>.<body>`` where the body is unpadded base64url of the
zlib-compressed canonical CBOR payload ``{"v": 1, ...}``. Each schema version
has its own decoder; unknown versions are refused rather than guessed at.
"""

from __future__ import annotations

import base64
import binascii
import re
import zlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import cbor2

from loadout.catalog.optimizations import is_optimization_key
from loadout.catalog.software import SoftwareCatalog, is_package_key, validate_packages
from loadout.errors import ShareDecodeError
from loadout.models import (
    BuildToEncode,
    DecodedBuild,
    DecodeResult,
    EncodeResult,
    HardwareProfile,
    SelectionState,
    is_cpu_type,
    is_dns_provider,
    is_gpu_type,
    is_monitor_software_type,
    is_peripheral_type,
    is_preset_type,
)
from loadout.observability import StructuredLogger
from loadout.policy import DEFAULT_POLICY, Policy, partition_eligible
from loadout.registry import REGISTRY, StableIdRegistry, StableIdTable

CURRENT_VERSION = 1
VERSION_SEPARATOR = "."
_VERSION_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True, slots=True)
class ShareConfig:
    base_url: str = "https://loadout.local/"
    fragment_prefix: str = "b="
    max_array_length: int = 100
    # Decompressed size cap.
    max_payload_bytes: int = 64 * 1024
    url_length_warning: int = 2000


DEFAULT_SHARE_CONFIG = ShareConfig()


def encode(
    build: BuildToEncode,
    *,
    policy: Policy = DEFAULT_POLICY,
    registry: StableIdRegistry = REGISTRY,
) -> str:
    return encode_with_meta(build, policy=policy, registry=registry).token


def encode_with_meta(
    build: BuildToEncode,
    *,
    policy: Policy = DEFAULT_POLICY,
    config: ShareConfig = DEFAULT_SHARE_CONFIG,
    registry: StableIdRegistry = REGISTRY,
    logger: StructuredLogger | None = None,
) -> EncodeResult:
    """Encode ``build`` and report what could not be carried.

    Optimization keys without a stable id are dropped and listed in
    ``dropped_keys``; ludicrous keys are blocked unless ``policy`` allows them.
    """
    payload: dict[str, Any] = {"v": CURRENT_VERSION}

    _put_scalar(payload, "c", build.cpu, registry.cpu, logger)
    _put_scalar(payload, "g", build.gpu, registry.gpu, logger)
    _put_scalar(payload, "d", build.dns_provider, registry.dns, logger)
    _put_ids(payload, "p", build.peripherals, registry.peripheral, logger)
    _put_ids(payload, "m", build.monitor_software, registry.monitor, logger)

    eligible, blocked = partition_eligible(dict.fromkeys(build.optimizations), policy=policy)
    for key in blocked:
        _log(logger, "encode", "Ludicrous optimization blocked from share token.", key=key)
    ids: list[int] = []
    dropped: list[str] = []
    for key in eligible:
        id_ = registry.optimization.id_for(key)
        if id_ is None:
            dropped.append(key)
            _log(logger, "encode", "Optimization has no stable id; dropped.", key=key)
        else:
            ids.append(id_)
    if ids:
        payload["o"] = sorted(set(ids))

    packages = list(dict.fromkeys(build.packages))
    if packages:
        payload["s"] = packages
    _put_scalar(payload, "r", build.preset, registry.preset, logger)

    raw = cbor2.dumps(payload, canonical=True)
    body = base64.urlsafe_b64encode(zlib.compress(raw, 9)).rstrip(b"=").decode("ascii")
    token = f"{CURRENT_VERSION}{VERSION_SEPARATOR}{body}"
    url = f"{config.base_url}#{config.fragment_prefix}{token}"
    too_long = len(url) > config.url_length_warning
    if too_long:
        _log(
            logger,
            "encode",
            "Share URL exceeds the recommended length.",
            extra={"length": len(url), "limit": config.url_length_warning},
        )
    return EncodeResult(
        token=token,
        url=url,
        url_length=len(url),
        url_too_long=too_long,
        blocked_count=len(blocked),
        dropped_keys=tuple(dropped),
    )


def decode(
    token: str,
    *,
    policy: Policy = DEFAULT_POLICY,
    config: ShareConfig = DEFAULT_SHARE_CONFIG,
    registry: StableIdRegistry = REGISTRY,
    logger: StructuredLogger | None = None,
) -> DecodeResult:
    """Decode a token; structural failures become ``DecodeResult(success=False)``."""
    try:
        build = decode_or_raise(token, policy=policy, config=config, registry=registry)
    except ShareDecodeError as exc:
        _log(logger, "decode", exc.message, level="warning")
        return DecodeResult.fail(exc.message)
    for warning in build.warnings:
        _log(logger, "decode", warning, level="warning")
    return DecodeResult.ok(build)


def decode_or_raise(
    token: str,
    *,
    policy: Policy = DEFAULT_POLICY,
    config: ShareConfig = DEFAULT_SHARE_CONFIG,
    registry: StableIdRegistry = REGISTRY,
) -> DecodedBuild:
    version, body = _split_token(token, config)
    decoder = _DECODERS.get(version)
    if decoder is None:
        raise _unsupported(version)
    payload = _unpack(body, config)
    embedded = payload.get("v")
    if type(embedded) is not int or embedded != version:
        if type(embedded) is int and embedded not in _DECODERS:
            raise _unsupported(embedded)
        raise ShareDecodeError(
            "Share payload version does not match its prefix.",
            context={"prefix": str(version), "payload": repr(embedded)},
        )
    return decoder(payload, policy=policy, config=config, registry=registry)


def rehydrate_selection(decoded: DecodedBuild, catalog: SoftwareCatalog) -> SelectionState:
    """Selection for a decoded build; packages absent from ``catalog`` are marked missing."""
    validation = validate_packages(decoded.packages, catalog)
    hardware = HardwareProfile(
        cpu=decoded.cpu or "amd_x3d",
        gpu=decoded.gpu or "nvidia",
        peripherals=decoded.peripherals,
        monitor_software=decoded.monitor_software,
    )
    return SelectionState.create(
        hardware=hardware,
        optimizations=decoded.optimizations,
        packages=decoded.packages,
        missing_packages=validation.invalid,
    )


def _decode_v1(
    payload: dict[Any, Any],
    *,
    policy: Policy,
    config: ShareConfig,
    registry: StableIdRegistry,
) -> DecodedBuild:
    warnings: list[str] = []
    skipped = 0

    def scalar(
        field: str, table: StableIdTable, guard: Callable[[object], bool], label: str
    ) -> Any:
        nonlocal skipped
        if field not in payload:
            return None
        value = table.value_for(payload[field])
        if value is None or not guard(value):
            skipped += 1
            warnings.append(f"Unknown {label} (ID: {payload[field]})")
            return None
        return value

    def array(
        field: str, table: StableIdTable, guard: Callable[[object], bool]
    ) -> tuple[list[str], int]:
        values: list[str] = []
        missing = 0
        for item in _bounded_list(payload.get(field), config.max_array_length):
            value = table.value_for(item)
            if value is None or not guard(value):
                missing += 1
            elif value not in values:
                values.append(value)
        return values, missing

    cpu = scalar("c", registry.cpu, is_cpu_type, "CPU setting")
    gpu = scalar("g", registry.gpu, is_gpu_type, "GPU setting")
    dns = scalar("d", registry.dns, is_dns_provider, "DNS setting")

    peripherals, missing = array("p", registry.peripheral, is_peripheral_type)
    if missing:
        skipped += missing
        warnings.append(f"{missing} peripheral(s) no longer available")

    monitors, missing = array("m", registry.monitor, is_monitor_software_type)
    if missing:
        skipped += missing
        warnings.append(f"{missing} monitor software no longer available")

    optimizations, missing = array("o", registry.optimization, is_optimization_key)
    if missing:
        skipped += missing
        warnings.append(f"{missing} optimization(s) no longer available")
    optimizations_kept, removed = partition_eligible(optimizations, policy=policy)
    if removed:
        skipped += len(removed)
        warnings.append(f"{len(removed)} dangerous optimization(s) removed for security")

    packages: list[str] = []
    unreadable = 0
    for item in _bounded_list(payload.get("s"), config.max_array_length):
        if is_package_key(item):
            if item not in packages:
                packages.append(item)
        else:
            unreadable += 1
    if unreadable:
        skipped += unreadable
        warnings.append(f"{unreadable} package(s) could not be read")

    preset = scalar("r", registry.preset, is_preset_type, "preset")

    return DecodedBuild(
        cpu=cpu,
        gpu=gpu,
        dns_provider=dns,
        peripherals=tuple(peripherals),
        monitor_software=tuple(monitors),
        optimizations=optimizations_kept,
        packages=tuple(packages),
        preset=preset,
        skipped_count=skipped,
        warnings=tuple(warnings),
    )


_DECODERS: dict[int, Callable[..., DecodedBuild]] = {
    1: _decode_v1,
}


def _split_token(token: str, config: ShareConfig) -> tuple[int, str]:
    if not isinstance(token, str):
        raise ShareDecodeError("Share token must be a string.")
    text = token.strip()
    if "#" in text:
        text = text.split("#", 1)[1]
    if config.fragment_prefix and text.startswith(config.fragment_prefix):
        text = text[len(config.fragment_prefix) :]
    version_text, separator, body = text.partition(VERSION_SEPARATOR)
    if not separator:
        raise ShareDecodeError(
            "Invalid share token: missing version prefix.",
            hint="Tokens look like '1.<data>'.",
        )
    if _VERSION_PATTERN.fullmatch(version_text) is None:
        raise ShareDecodeError(
            "Invalid share token: version is not a number.",
            context={"version": version_text},
        )
    version = int(version_text)
    if version < 1:
        raise ShareDecodeError("Invalid share token: version must be at least 1.")
    if not body:
        raise ShareDecodeError("Invalid share token: empty payload.")
    return version, body


def _unpack(body: str, config: ShareConfig) -> dict[Any, Any]:
    padded = body + "=" * (-len(body) % 4)
    try:
        compressed = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ShareDecodeError("Invalid share token: payload is not base64url.") from exc

    inflater = zlib.decompressobj()
    try:
        raw = inflater.decompress(compressed, config.max_payload_bytes)
    except zlib.error as exc:
        raise ShareDecodeError("Invalid share token: payload cannot be decompressed.") from exc
    if not inflater.eof:
        if inflater.unconsumed_tail or len(raw) >= config.max_payload_bytes:
            raise ShareDecodeError(
                "Invalid share token: payload exceeds the size limit.",
                context={"limit": str(config.max_payload_bytes)},
            )
        raise ShareDecodeError("Invalid share token: payload is truncated.")

    try:
        payload = cbor2.loads(raw)
    except cbor2.CBORDecodeError as exc:
        raise ShareDecodeError("Invalid share token: payload cannot be parsed.") from exc
    if not isinstance(payload, dict):
        raise ShareDecodeError("Invalid share token: payload is not a map.")
    return payload


def _unsupported(version: int) -> ShareDecodeError:
    return ShareDecodeError(
        f"URL version {version} is not supported. Please update.",
        context={"version": str(version)},
    )


def _bounded_list(value: object, limit: int) -> list[Any]:
    if not isinstance(value, list):
        return []
    return value[:limit]


def _put_scalar(
    payload: dict[str, Any],
    field: str,
    value: str | None,
    table: StableIdTable,
    logger: StructuredLogger | None,
) -> None:
    if value is None:
        return
    id_ = table.id_for(value)
    if id_ is None:
        _log(logger, "encode", f"No stable id for {table.domain} value; omitted.", key=value)
        return
    payload[field] = id_


def _put_ids(
    payload: dict[str, Any],
    field: str,
    values: Iterable[str],
    table: StableIdTable,
    logger: StructuredLogger | None,
) -> None:
    ids: list[int] = []
    for value in dict.fromkeys(values):
        id_ = table.id_for(value)
        if id_ is None:
            _log(logger, "encode", f"No stable id for {table.domain} value; omitted.", key=value)
        else:
            ids.append(id_)
    if ids:
        payload[field] = ids


def _log(
    logger: StructuredLogger | None,
    operation: str,
    message: str,
    *,
    key: str | None = None,
    level: str = "warning",
    extra: dict[str, object] | None = None,
) -> None:
    if logger is None:
        return
    logger.log(
        operation=operation,
        component="share",
        key=key,
        message=message,
        level=level,
        extra=extra,
    )
