import pytest

from loadout.compiler import compile_verification_script
from loadout.models import SelectionState
from loadout.policy import DEFAULT_POLICY


@pytest.fixture(autouse=True)
def _fixed_epoch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SOURCE_DATE_EPOCH", raising=False)


def test_registry_values_are_checked_read_only() -> None:
    text = compile_verification_script(SelectionState.create(optimizations=["mouse_accel"]))
    assert text.count("Test-RegValue \"HKCU:\\Control Panel\\Mouse\"") == 3
    assert '"MouseThreshold2" "0" "Mouse acceleration disabled: MouseThreshold2"' in text
    assert "Set-ItemProperty" not in text
    assert "if ($script:Fail -gt 0) { exit 1 }" in text


def test_services_checked_and_unverifiable_actions_skipped() -> None:
    selection = SelectionState.create(optimizations=["sysmain_disable", "razer_block", "hpet"])
    text = compile_verification_script(selection)
    assert 'Test-ServiceStartup "SysMain" "Disabled" "SysMain disabled: SysMain"' in text
    assert 'Write-Skip "Razer services blocked"' in text
    assert 'Write-Skip "HPET disabled (reboot required)"' in text


def test_manual_steps_are_skipped_and_empty_sections_omitted() -> None:
    text = compile_verification_script(SelectionState.create(optimizations=["timer"]))
    assert 'Write-Skip "Timer Resolution (manual step)"' in text
    assert "# === Audio ===" not in text


def test_ludicrous_checks_follow_policy(logger) -> None:
    selection = SelectionState.create(optimizations=["spectre_meltdown_off"])
    assert "FeatureSettingsOverride" not in compile_verification_script(selection)
    text = compile_verification_script(
        selection, policy=DEFAULT_POLICY.acknowledge_ludicrous(), logger=logger
    )
    assert '"FeatureSettingsOverride" 3' in text
    record = logger.records_for_operation("compile_verification_script")[0]
    assert record["extra"] == {"checks": 2}
