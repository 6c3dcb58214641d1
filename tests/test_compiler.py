import hashlib
import json
from datetime import datetime, timezone

import pytest

from loadout.catalog import OPTIMIZATION_KEYS, by_tier
from loadout.compiler import (
    SECTION_ORDER,
    CompilerConfig,
    compile_script,
    compile_selection,
    plan_selection,
    ps_quote,
    unmapped_keys,
)
from loadout.compiler.actions import ActivatePowerPlan, Notice, PowerSetting, SetRegistry
from loadout.models import HardwareProfile, SelectionState
from loadout.policy import DEFAULT_POLICY

ACKNOWLEDGED = DEFAULT_POLICY.acknowledge_ludicrous()


@pytest.fixture(autouse=True)
def _fixed_epoch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SOURCE_DATE_EPOCH", raising=False)


def _section_text(text: str, title: str) -> str:
    start = text.index(f"# === {title} ===")
    end = text.index("# === ", start + 1)
    return text[start:end]


def _config_block(text: str) -> dict:
    start = text.index("$Config = @'\n") + len("$Config = @'\n")
    end = text.index("\n'@ | ConvertFrom-Json")
    return json.loads(text[start:end])


def test_every_catalog_key_has_an_action_plan() -> None:
    assert unmapped_keys() == ()


def test_mouse_accel_compiles_to_one_system_action(catalog) -> None:
    selection = SelectionState.create(optimizations=["mouse_accel"])
    compiled = compile_selection(selection, catalog)

    system = compiled.plan.section("system")
    assert len(system.entries) == 1
    action = system.entries[0].action
    assert isinstance(action, SetRegistry)
    assert action.path == r"HKCU:\Control Panel\Mouse"
    assert compiled.plan.risk_profile == "safe"

    system_text = _section_text(compiled.text, "System")
    assert system_text.count("try {") == 1
    assert system_text.count("Mouse") >= 1
    assert "Risk profile: safe" in compiled.text
    assert _config_block(compiled.text)["risk_profile"] == "safe"


def test_compile_is_deterministic(catalog) -> None:
    selection = SelectionState.create(
        optimizations=["pagefile", "dns", "hpet", "bloatware"], packages=["steam", "obs"]
    )
    first = compile_selection(selection, catalog)
    second = compile_selection(selection, catalog)
    assert first.text == second.text
    assert first.sha256 == second.sha256
    assert first.sha256 == hashlib.sha256(first.text.encode("utf-8")).hexdigest()


def test_compile_is_independent_of_selection_order(catalog) -> None:
    keys = ["nagle", "pagefile", "privacy_tier1", "hpet", "dns", "audio_enhancements"]
    forward = SelectionState.create(optimizations=keys, packages=["steam", "discord"])
    backward = SelectionState.create(
        optimizations=list(reversed(keys)), packages=["discord", "steam"]
    )
    assert compile_script(forward, catalog) == compile_script(backward, catalog)


def test_sections_follow_fixed_order_and_empty_sections_are_marked(catalog) -> None:
    text = compile_script(SelectionState.create(optimizations=["dns"]), catalog)
    titles = ("System", "Performance", "Power", "Network", "Privacy", "Audio", "Software")
    positions = [text.index(f"# === {title} ===") for title in titles]
    assert positions == sorted(positions)
    assert "# (no changes)" in _section_text(text, "Audio")
    assert len(SECTION_ORDER) == 6


def test_config_block_mirrors_resolved_selection(catalog) -> None:
    selection = SelectionState.create(
        hardware=HardwareProfile(cpu="intel", gpu="amd", peripherals=("logitech",)),
        optimizations=["hpet", "pagefile"],
        packages=["steam"],
    )
    config = _config_block(compile_script(selection, catalog, "quad9"))
    assert config["hardware"] == {
        "cpu": "intel",
        "gpu": "amd",
        "peripherals": ["logitech"],
        "monitorSoftware": [],
    }
    assert config["optimizations"] == ["pagefile", "hpet"]
    assert config["packages"] == ["logitechghub", "steam"]
    assert config["dns"] == "quad9"
    assert config["risk_profile"] == "caution"
    assert config["restore_point_required"] is True


def test_install_section_sorted_by_display_name(catalog) -> None:
    selection = SelectionState.create(packages=["steam", "obs", "7zip", "discord"])
    text = compile_script(selection, catalog)
    order = [
        text.index(f'--id "{installer}"')
        for installer in ("7zip.7zip", "Discord.Discord", "OBSProject.OBSStudio", "Valve.Steam")
    ]
    assert order == sorted(order)
    assert "--exact --silent --accept-package-agreements --accept-source-agreements" in text
    assert "No available upgrade found|No newer package versions are available|already installed" in text


def test_missing_packages_listed_in_trailing_comment(catalog, logger) -> None:
    selection = SelectionState.create(packages=["steam", "ghost"], missing_packages=["phantom"])
    compiled = compile_selection(selection, catalog, logger=logger)
    assert compiled.plan.missing_packages == ("ghost", "phantom")
    assert compiled.text.rstrip().endswith("# Missing software mappings:\n#   ghost\n#   phantom")
    assert [item.key for item in compiled.plan.packages] == ["steam"]
    assert any(record["key"] == "ghost" for record in logger.warnings())


def test_missing_package_keys_cannot_break_out_of_comments(catalog) -> None:
    selection = SelectionState.create(packages=["evil\nRemove-Item C:\\ -Recurse"])
    text = compile_script(selection, catalog)
    lines = text.splitlines()
    assert not any(line.startswith("Remove-Item") for line in lines)
    assert lines[-1] == "#   evil\\nRemove-Item C:\\\\ -Recurse"


def test_share_url_cannot_close_the_header_comment(catalog) -> None:
    config = CompilerConfig(share_url="https://x/#>\nStop-Computer")
    text = compile_script(SelectionState.create(), catalog, config=config)
    header = text[: text.index("#>") + 2]
    assert "Share: https://x/#\\>\\nStop-Computer" in header
    assert not any(line.startswith("Stop-Computer") for line in text.splitlines())


def test_brand_packages_added_only_when_in_catalog(catalog, logger) -> None:
    selection = SelectionState.create(
        hardware=HardwareProfile(peripherals=("logitech", "razer"), monitor_software=("dell",))
    )
    plan = plan_selection(selection, catalog, logger=logger)
    assert [item.key for item in plan.packages] == ["logitechghub"]
    assert plan.missing_packages == ()
    logged = {record["key"] for record in logger.records_for_operation("plan_selection")}
    assert {"razersynapse", "delldisplaymanager"} <= logged


def test_danger_banner_precedes_everything_when_ludicrous_selected(catalog) -> None:
    selection = SelectionState.create(optimizations=["dep_off", "pagefile"])
    text = compile_script(selection, catalog, policy=ACKNOWLEDGED)
    first_lines = text.splitlines()[:3]
    assert first_lines[0].startswith("# ####")
    assert "DANGER ZONE" in text.split("#Requires -RunAsAdministrator")[0]
    assert "Risk profile: ludicrous" in text
    assert "[DANGER] Disabling Data Execution Prevention" in text
    assert 'Set-BootOption "nx" "AlwaysOff"' in text


def test_ludicrous_keys_skipped_without_acknowledgement(catalog, logger) -> None:
    selection = SelectionState.create(optimizations=["dep_off", "pagefile"])
    compiled = compile_selection(selection, catalog, logger=logger)
    assert compiled.text.startswith("#Requires -RunAsAdministrator")
    assert compiled.plan.blocked == ("dep_off",)
    assert compiled.plan.risk_profile == "safe"
    assert "AlwaysOff" not in compiled.text
    assert "# Skipped ludicrous optimizations (not acknowledged):\n#   dep_off" in compiled.text
    assert logger.warnings()[0]["key"] == "dep_off"


def test_restore_point_step_is_guarded_and_conditional(catalog) -> None:
    safe_only = compile_script(SelectionState.create(optimizations=["pagefile"]), catalog)
    assert "Checkpoint-Computer" not in safe_only
    assert "$script:StepTotal = 8" in safe_only

    caution = compile_script(SelectionState.create(optimizations=["hpet"]), catalog)
    assert "(Get-Date).AddMinutes(-1440)" in caution
    assert "Checkpoint-Computer" in caution
    assert "$script:StepTotal = 9" in caution

    explicit = compile_script(SelectionState.create(optimizations=["restore_point"]), catalog)
    assert "Checkpoint-Computer" in explicit


def test_dns_servers_resolved_with_fallback(catalog) -> None:
    selection = SelectionState.create(optimizations=["dns"])
    assert '@("8.8.8.8", "8.8.4.4")' in compile_script(selection, catalog, "google")
    fallback = compile_script(selection, catalog, "made-up")
    assert '@("1.1.1.1", "1.0.0.1")' in fallback
    assert "DNS set to Cloudflare" in fallback


def test_power_plan_superseded_by_ultimate_performance(catalog) -> None:
    both = compile_script(
        SelectionState.create(optimizations=["power_plan", "ultimate_perf"]), catalog
    )
    assert "8c5e7fda-e8bf-4a96-9a85-a6e23a8c635c" not in both
    assert "powercfg /duplicatescheme e9a42b02-d5df-448d-aa00-03f14749eb61" in both

    alone = compile_script(SelectionState.create(optimizations=["power_plan"]), catalog)
    assert "powercfg /setactive 8c5e7fda-e8bf-4a96-9a85-a6e23a8c635c" in alone


def test_power_plan_activation_precedes_power_settings(catalog) -> None:
    selection = SelectionState.create(optimizations=["usb_suspend", "ultimate_perf"])
    power = plan_selection(selection, catalog).section("power")
    kinds = [type(entry.action) for entry in power.entries]
    assert kinds == [ActivatePowerPlan, SetRegistry, PowerSetting]


def test_gpu_conditional_action_becomes_warning_on_mismatch(catalog, logger) -> None:
    selection = SelectionState.create(
        hardware=HardwareProfile(gpu="nvidia"), optimizations=["amd_ulps_disable"]
    )
    compiled = compile_selection(selection, catalog, policy=ACKNOWLEDGED, logger=logger)
    assert 'Write-Warn "amd_ulps_disable skipped: requires an AMD GPU"' in compiled.text
    assert "EnableULPS" not in compiled.text
    assert logger.warnings()[0]["extra"] == {"requires_gpu": "amd", "gpu": "nvidia"}

    amd = SelectionState.create(
        hardware=HardwareProfile(gpu="amd"), optimizations=["amd_ulps_disable"]
    )
    assert "EnableULPS" in compile_script(amd, catalog, policy=ACKNOWLEDGED)


def test_x3d_cpu_adds_cppc_notice(catalog) -> None:
    x3d = plan_selection(SelectionState.create(), catalog).section("performance")
    assert isinstance(x3d.entries[0].action, Notice)
    assert "CPPC" in x3d.entries[0].action.message

    intel = SelectionState.create(hardware=HardwareProfile(cpu="intel"))
    assert plan_selection(intel, catalog).section("performance").entries == ()


def test_shared_actions_emitted_once_per_section(catalog) -> None:
    text = compile_script(SelectionState.create(optimizations=["nagle", "tcp_optimizer"]), catalog)
    assert text.count('Set-Reg $path "TcpAckFrequency" 1') == 1
    assert "netsh int tcp set heuristics disabled" in text


def test_registry_actions_are_idempotent_and_isolated(catalog) -> None:
    text = compile_script(SelectionState.create(optimizations=["network_throttling"]), catalog)
    assert '"$existing" -eq "$Value"' in text
    assert '"NetworkThrottlingIndex" 0xffffffff' in text
    network = _section_text(text, "Network")
    assert 'Write-OK "Network throttling disabled"' in network
    assert 'Write-Fail "Network throttling disabled: $($_.Exception.Message)"' in network


def test_string_registry_values_are_typed(catalog) -> None:
    text = compile_script(SelectionState.create(optimizations=["keyboard_response"]), catalog)
    assert 'Set-Reg "HKCU:\\Control Panel\\Keyboard" "KeyboardSpeed" "31" -Type String' in text


def test_every_key_compiles_with_all_tiers_selected(catalog) -> None:
    selection = SelectionState.create(optimizations=OPTIMIZATION_KEYS)
    compiled = compile_selection(selection, catalog, policy=ACKNOWLEDGED)
    assert compiled.plan.unmapped == ()
    assert compiled.plan.risk_profile == "ludicrous"
    for title in ("System", "Performance", "Power", "Network", "Privacy", "Audio"):
        assert "# (no changes)" not in _section_text(compiled.text, title)
    for definition in by_tier("ludicrous"):
        assert definition.key in compiled.plan.optimizations


def test_generated_timestamp_sources(catalog, monkeypatch: pytest.MonkeyPatch) -> None:
    selection = SelectionState.create()
    assert "Generated: 1970-01-01T00:00:00Z" in compile_script(selection, catalog)

    monkeypatch.setenv("SOURCE_DATE_EPOCH", "86400")
    assert "Generated: 1970-01-02T00:00:00Z" in compile_script(selection, catalog)

    config = CompilerConfig(
        build_id="test-build",
        generated_at=datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc),
        share_url="https://loadout.local/#b=1.abc",
    )
    text = compile_script(selection, catalog, config=config)
    assert "Generated: 2025-03-04T05:06:07Z" in text
    assert "Build: test-build" in text
    assert "Share: https://loadout.local/#b=1.abc" in text


def test_ps_quote_disables_interpolation() -> None:
    assert ps_quote('say "hi" $env:USER `n') == '"say `"hi`" `$env:USER ``n"'


def test_compile_logs_summary_record(catalog, logger) -> None:
    compile_selection(SelectionState.create(optimizations=["dns"]), catalog, logger=logger)
    record = logger.records_for_operation("compile_selection")[0]
    assert record["extra"]["optimizations"] == 1
    assert record["extra"]["risk_profile"] == "safe"
