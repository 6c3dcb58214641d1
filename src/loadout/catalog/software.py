"""Software catalog model, parser, and package validation."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loadout.errors import CatalogError
from loadout.models import PACKAGE_CATEGORIES, PackageCategory

PACKAGE_KEY_PATTERN = re.compile(r"[a-z0-9._-]+")
INSTALLER_ID_PATTERN = re.compile(r"[\w.+-]+", re.ASCII)
MAX_DESCRIPTION_LENGTH = 200


@dataclass(frozen=True, slots=True)
class SoftwarePackage:
    installer_id: str
    name: str
    category: PackageCategory
    description: str | None = None


SoftwareCatalog = Mapping[str, SoftwarePackage]


@dataclass(frozen=True, slots=True)
class PackageValidation:
    valid: tuple[str, ...]
    invalid: tuple[str, ...]


def is_package_key(value: object) -> bool:
    return isinstance(value, str) and PACKAGE_KEY_PATTERN.fullmatch(value) is not None


def validate_packages(packages: Iterable[str], catalog: SoftwareCatalog) -> PackageValidation:
    """Split package keys into those present in ``catalog`` and those missing from it."""
    valid: list[str] = []
    invalid: list[str] = []
    for key in dict.fromkeys(packages):
        (valid if key in catalog else invalid).append(key)
    return PackageValidation(valid=tuple(valid), invalid=tuple(invalid))


def parse_software_catalog(raw: str | Mapping[str, Any]) -> dict[str, SoftwarePackage]:
    if isinstance(raw, str):
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CatalogError("Invalid software catalog JSON.", hint=str(exc)) from exc
    else:
        payload = raw

    if not isinstance(payload, Mapping):
        raise CatalogError("Invalid software catalog payload type.")

    catalog: dict[str, SoftwarePackage] = {}
    for raw_key, entry in payload.items():
        # Null entries are placeholders for retired packages.
        if entry is None:
            continue
        if not isinstance(raw_key, str):
            raise CatalogError("Invalid software catalog key.")
        key = raw_key.lower()
        if not is_package_key(key):
            raise CatalogError(
                "Invalid package key.",
                hint="Package keys are lowercase alphanumerics with dots, hyphens, or underscores.",
                context={"key": raw_key},
            )
        catalog[key] = _parse_package(key, entry)
    return catalog


def read_software_catalog(path: str | Path) -> dict[str, SoftwarePackage]:
    catalog_path = Path(path)
    try:
        raw = catalog_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise CatalogError(
            "Software catalog does not exist.",
            context={"path": str(catalog_path)},
        ) from exc
    return parse_software_catalog(raw)


def _parse_package(key: str, entry: Any) -> SoftwarePackage:
    if not isinstance(entry, Mapping):
        raise CatalogError("Invalid software catalog entry.", context={"key": key})
    installer_id = _required_str(entry, "id", key=key)
    if INSTALLER_ID_PATTERN.fullmatch(installer_id) is None:
        raise CatalogError(
            "Invalid installer id.",
            hint="Installer ids look like Publisher.Package (e.g. Valve.Steam).",
            context={"key": key, "id": installer_id},
        )
    name = _required_str(entry, "name", key=key).strip()
    if not name:
        raise CatalogError("Package name cannot be empty.", context={"key": key})
    category = _required_str(entry, "category", key=key)
    if category not in PACKAGE_CATEGORIES:
        raise CatalogError(
            "Invalid package category.",
            hint=f"Expected one of: {', '.join(PACKAGE_CATEGORIES)}.",
            context={"key": key, "category": category},
        )
    description = entry.get("desc")
    if description is not None:
        if not isinstance(description, str) or len(description) > MAX_DESCRIPTION_LENGTH:
            raise CatalogError("Invalid package description.", context={"key": key})
        description = description.strip()
    return SoftwarePackage(
        installer_id=installer_id,
        name=name,
        category=category,  # type: ignore[arg-type]
        description=description,
    )


def _required_str(payload: Mapping[str, Any], field_name: str, *, key: str) -> str:
    value = payload.get(field_name)
    if not isinstance(value, str) or not value:
        raise CatalogError(f"Invalid software catalog `{field_name}` value.", context={"key": key})
    return value
