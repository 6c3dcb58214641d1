"""Read-only verification script derived from the same action table."""

from __future__ import annotations

import textwrap

from loadout.compiler.actions import ConfigureService, ManualStep, Notice, SetRegistry
from loadout.compiler.emit_powershell import (
    CompilerConfig,
    generated_timestamp,
    ps_quote,
    registry_literal,
)
from loadout.compiler.plan import PlannedAction, plan_selection
from loadout.models import SelectionState
from loadout.observability import StructuredLogger
from loadout.policy import DEFAULT_POLICY, Policy

VERIFY_FUNCTIONS = textwrap.dedent("""\
    $script:Pass = 0
    $script:Fail = 0
    $script:Skip = 0

    function Write-Pass([string]$Label) {
        $script:Pass++
        Write-Host "  [PASS] $Label" -ForegroundColor Green
    }

    function Write-Skip([string]$Label) {
        $script:Skip++
        Write-Host "  [SKIP] $Label" -ForegroundColor DarkGray
    }

    function Test-RegValue {
        param([string]$Path, [string]$Name, $Expected, [string]$Label)
        $actual = (Get-ItemProperty -Path $Path -Name $Name -EA SilentlyContinue).$Name
        if ($null -ne $actual -and "$actual" -eq "$Expected") {
            Write-Pass $Label
        } else {
            $script:Fail++
            Write-Host "  [FAIL] $Label (expected $Expected, found $actual)" -ForegroundColor Red
        }
    }

    function Test-ServiceStartup {
        param([string]$Name, [string]$Expected, [string]$Label)
        $svc = Get-Service -Name $Name -EA SilentlyContinue
        if (-not $svc) {
            Write-Skip "$Label (service not installed)"
        } elseif ("$($svc.StartType)" -eq $Expected) {
            Write-Pass $Label
        } else {
            $script:Fail++
            Write-Host "  [FAIL] $Label (startup is $($svc.StartType))" -ForegroundColor Red
        }
    }
""")

VERIFY_FOOTER = textwrap.dedent("""\
    Write-Host ""
    Write-Host "Verification: $($script:Pass) passed, $($script:Fail) failed, $($script:Skip) skipped" -ForegroundColor Cyan
    if ($script:Fail -gt 0) { exit 1 }
""")


def compile_verification_script(
    selection: SelectionState,
    *,
    policy: Policy = DEFAULT_POLICY,
    config: CompilerConfig | None = None,
    logger: StructuredLogger | None = None,
) -> str:
    """Script that checks the registry values and service states a selection sets.

    Actions whose effect cannot be read back (scripts, power settings, boot
    options) are reported as SKIP.
    """
    config = config or CompilerConfig()
    plan = plan_selection(selection, {}, policy=policy, logger=logger)

    lines = [
        "#Requires -RunAsAdministrator",
        "<#",
        ".SYNOPSIS",
        f"    Verify settings applied by {config.script_name}",
        ".DESCRIPTION",
        f"    Build: {config.build_id}",
        f"    Generated: {generated_timestamp(config)}",
        "#>",
        "",
        *VERIFY_FUNCTIONS.splitlines(),
    ]
    checks = 0
    for section in plan.sections:
        body: list[str] = []
        for entry in section.entries:
            rendered = _verify_entry(entry)
            checks += len(rendered)
            body.extend(rendered)
        if body:
            lines.extend(["", f"# === {section.title} ===", f"Write-Host {ps_quote(section.title)}"])
            lines.extend(body)
    lines.append("")
    lines.extend(VERIFY_FOOTER.splitlines())

    if logger is not None:
        logger.log(
            operation="compile_verification_script",
            component="compiler",
            message="Verification script compiled.",
            extra={"checks": checks},
        )
    return "\n".join(lines) + "\n"


def _verify_entry(entry: PlannedAction) -> list[str]:
    action = entry.action
    if isinstance(action, Notice):
        return []
    if isinstance(action, ManualStep):
        return [f"Write-Skip {ps_quote(action.title + ' (manual step)')}"]
    if isinstance(action, SetRegistry):
        return [
            f"Test-RegValue {ps_quote(action.path)} {ps_quote(value.name)} "
            f"{registry_literal(value)} {ps_quote(action.label + ': ' + value.name)}"
            for value in action.values
        ]
    if isinstance(action, ConfigureService) and not action.wildcard:
        return [
            f"Test-ServiceStartup {ps_quote(name)} {ps_quote(action.startup)} "
            f"{ps_quote(action.label + ': ' + name)}"
            for name in action.names
        ]
    return [f"Write-Skip {ps_quote(action.label)}"]
