"""Shared test fixtures."""

from __future__ import annotations

import pytest

from loadout.catalog import SoftwarePackage, parse_software_catalog
from loadout.observability import StructuredLogger

CATALOG_DOCUMENT = {
    "steam": {"id": "Valve.Steam", "name": "Steam", "category": "launcher"},
    "discord": {"id": "Discord.Discord", "name": "Discord", "category": "gaming"},
    "obs": {"id": "OBSProject.OBSStudio", "name": "OBS Studio", "category": "streaming"},
    "7zip": {"id": "7zip.7zip", "name": "7-Zip", "category": "utility"},
    "logitechghub": {"id": "Logitech.GHUB", "name": "Logitech G HUB", "category": "rgb"},
    "retired": None,
}


@pytest.fixture
def catalog() -> dict[str, SoftwarePackage]:
    """Small software catalog; razer/monitor brand packages are deliberately absent."""
    return parse_software_catalog(CATALOG_DOCUMENT)


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger()


@pytest.fixture
def catalog_document() -> dict[str, object]:
    return dict(CATALOG_DOCUMENT)
