import json
from pathlib import Path

import pytest

from loadout.catalog import (
    ALL_OPTIMIZATIONS,
    MINIMAL_DEFAULT,
    OPTIMIZATION_KEYS,
    PRESETS,
    brand_packages,
    by_tier,
    categories_for_tier,
    classify_risk,
    count_by_tier,
    declaration_order,
    default_keys,
    find_optimization,
    is_manual_opt_in_only,
    lookup,
    optimizations_for_preset,
    parse_software_catalog,
    read_software_catalog,
    requires_double_confirm,
    requires_restore_point,
    resolve_dns,
    tier_of,
    validate_packages,
)
from loadout.catalog.software import is_package_key
from loadout.errors import CatalogError, ErrorCode


def test_catalog_tier_sizes_and_unique_keys() -> None:
    assert len(by_tier("safe")) == 45
    assert len(by_tier("caution")) == 23
    assert len(by_tier("risky")) == 10
    assert len(by_tier("ludicrous")) == 8
    assert len(set(OPTIMIZATION_KEYS)) == len(ALL_OPTIMIZATIONS) == 86


def test_default_keys_are_safe_and_never_ludicrous() -> None:
    defaults = default_keys()
    assert len(defaults) == 13
    assert all(tier_of(key) == "safe" for key in defaults)
    assert not any(opt.default_checked for opt in by_tier("ludicrous"))


def test_lookup_filters_by_tier_and_category() -> None:
    keys = [opt.key for opt in lookup("safe", "input")]
    assert keys == ["mouse_accel", "keyboard_response", "accessibility_shortcuts", "input_buffer"]
    assert lookup("risky", "input") == ()


def test_categories_for_tier_follow_category_order() -> None:
    assert categories_for_tier("risky") == ("system", "network", "privacy", "audio")
    assert "input" in categories_for_tier("safe")


def test_classify_risk_returns_highest_tier() -> None:
    assert classify_risk(set()) == "safe"
    assert classify_risk({"pagefile", "dns"}) == "safe"
    assert classify_risk({"pagefile", "hpet"}) == "caution"
    assert classify_risk({"pagefile", "hpet", "bloatware"}) == "risky"
    assert classify_risk({"pagefile", "hpet", "bloatware", "dep_off"}) == "ludicrous"


def test_classify_risk_ignores_unknown_keys() -> None:
    assert classify_risk({"not_a_real_key"}) == "safe"


def test_requires_restore_point_from_caution_upwards() -> None:
    assert not requires_restore_point({"pagefile"})
    assert requires_restore_point({"msi_mode"})
    assert requires_restore_point({"spectre_meltdown_off"})


def test_double_confirm_and_manual_opt_in() -> None:
    assert requires_double_confirm("bloatware")
    assert requires_double_confirm("dep_off")
    assert not requires_double_confirm("hpet")
    assert is_manual_opt_in_only("process_mitigation")
    assert is_manual_opt_in_only("core_isolation_off")
    assert not is_manual_opt_in_only("pagefile")


def test_declaration_order_is_independent_of_input_order() -> None:
    forward = declaration_order(["dns", "pagefile", "hpet", "unknown"])
    backward = declaration_order(["hpet", "unknown", "pagefile", "dns"])
    assert forward == backward == ("pagefile", "dns", "hpet")


def test_count_by_tier() -> None:
    counts = count_by_tier(["pagefile", "hpet", "hpet", "dep_off"])
    assert counts == {"safe": 1, "caution": 1, "risky": 0, "ludicrous": 1}


def test_presets_never_contain_ludicrous_keys() -> None:
    for keys in [MINIMAL_DEFAULT, *PRESETS.values()]:
        assert all(tier_of(key) not in (None, "ludicrous") for key in keys)


def test_optimizations_for_preset_uses_declaration_order() -> None:
    keys = optimizations_for_preset("streamer")
    assert "gamedvr" not in keys
    assert keys == declaration_order(keys)


def test_unknown_preset_raises_catalog_error() -> None:
    with pytest.raises(CatalogError) as excinfo:
        optimizations_for_preset("speedrunner")  # type: ignore[arg-type]
    assert excinfo.value.code == ErrorCode.CATALOG.value


def test_find_optimization_returns_definition() -> None:
    definition = find_optimization("mouse_accel")
    assert definition is not None
    assert definition.category == "input"
    assert find_optimization("nope") is None


def test_resolve_dns_falls_back_to_cloudflare() -> None:
    assert resolve_dns("quad9").primary == "9.9.9.9"
    assert resolve_dns("made-up").name == "Cloudflare"
    assert resolve_dns(None).primary == "1.1.1.1"


def test_brand_packages_are_ordered_and_unique() -> None:
    assert brand_packages(("razer", "logitech"), ("dell",)) == (
        "razersynapse",
        "logitechghub",
        "delldisplaymanager",
    )


def test_parse_software_catalog_lowercases_and_skips_null_entries() -> None:
    catalog = parse_software_catalog(
        json.dumps(
            {
                "Steam": {"id": "Valve.Steam", "name": "Steam", "category": "launcher"},
                "gone": None,
            }
        )
    )
    assert list(catalog) == ["steam"]
    assert catalog["steam"].installer_id == "Valve.Steam"


@pytest.mark.parametrize(
    "entry",
    [
        {"id": "bad id", "name": "Steam", "category": "launcher"},
        {"id": "Valve.Steam\n", "name": "Steam", "category": "launcher"},
        {"id": "Valve.Steam", "name": "   ", "category": "launcher"},
        {"id": "Valve.Steam", "name": "Steam", "category": "toys"},
        {"name": "Steam", "category": "launcher"},
        "Valve.Steam",
    ],
)
def test_parse_software_catalog_rejects_malformed_entries(entry: object) -> None:
    with pytest.raises(CatalogError) as excinfo:
        parse_software_catalog({"steam": entry})
    assert excinfo.value.code == ErrorCode.CATALOG.value


def test_parse_software_catalog_rejects_invalid_json() -> None:
    with pytest.raises(CatalogError):
        parse_software_catalog("{not json")


def test_read_software_catalog_missing_file(tmp_path: Path) -> None:
    with pytest.raises(CatalogError) as excinfo:
        read_software_catalog(tmp_path / "missing.json")
    assert "does not exist" in str(excinfo.value)


def test_validate_packages_splits_present_and_missing(catalog) -> None:
    result = validate_packages(["steam", "ghost", "discord", "steam"], catalog)
    assert result.valid == ("steam", "discord")
    assert result.invalid == ("ghost",)


@pytest.mark.parametrize("key", ["steam\n", "steam\nrm", "Steam", "", "steam key"])
def test_is_package_key_rejects_malformed_keys(key: str) -> None:
    assert not is_package_key(key)


def test_parse_software_catalog_rejects_key_with_trailing_newline() -> None:
    with pytest.raises(CatalogError) as excinfo:
        parse_software_catalog(
            {"steam\n": {"id": "Valve.Steam", "name": "Steam", "category": "launcher"}}
        )
    assert excinfo.value.code == ErrorCode.CATALOG.value
