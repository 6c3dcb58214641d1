"""Render a ``ScriptPlan`` into a PowerShell setup script."""

from __future__ import annotations

import hashlib
import json
import os
import textwrap
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from loadout import __version__
from loadout.catalog.hardware import CPU_LABELS, GPU_LABELS
from loadout.catalog.software import SoftwareCatalog
from loadout.compiler.actions import (
    Action,
    ActivatePowerPlan,
    BootOption,
    ConfigureService,
    DeleteRegistryKey,
    ManualStep,
    Notice,
    PowerSetting,
    RegistryValue,
    RemoveAppx,
    RunScript,
    SetDns,
    SetEnvironment,
    SetRegistry,
)
from loadout.compiler.plan import ScriptPlan, SectionPlan, plan_selection
from loadout.models import SelectionState
from loadout.observability import StructuredLogger
from loadout.policy import DEFAULT_POLICY, Policy

INDENT = "    "

DANGER_BANNER = textwrap.dedent("""\
    # ##########################################################################
    # #                                                                        #
    # #   DANGER ZONE: LUDICROUS OPTIMIZATIONS SELECTED                        #
    # #                                                                        #
    # #   This script disables security mitigations and hardware safeguards.   #
    # #   Do not run it on a machine used for banking, work, or anything       #
    # #   you cannot afford to lose. A restore point is created first.         #
    # #                                                                        #
    # ##########################################################################
""")

HELPER_FUNCTIONS = textwrap.dedent("""\
    $ErrorActionPreference = "Continue"
    $script:Succeeded = 0
    $script:Warnings = 0
    $script:Failed = 0
    $script:StepIndex = 0

    function Write-Step([string]$Title) {
        $script:StepIndex++
        Write-Host ""
        Write-Host "[$($script:StepIndex)/$($script:StepTotal)] $Title" -ForegroundColor Cyan
    }

    function Write-OK([string]$Message) {
        $script:Succeeded++
        Write-Host "  [OK] $Message" -ForegroundColor Green
    }

    function Write-Fail([string]$Message) {
        $script:Failed++
        Write-Host "  [FAIL] $Message" -ForegroundColor Red
    }

    function Write-Warn([string]$Message) {
        $script:Warnings++
        Write-Host "  [WARN] $Message" -ForegroundColor Yellow
    }

    function Set-Reg {
        param([string]$Path, [string]$Name, $Value, [string]$Type = "DWord")
        if (-not (Test-Path $Path)) { New-Item -Path $Path -Force -EA Stop | Out-Null }
        $existing = (Get-ItemProperty -Path $Path -Name $Name -EA SilentlyContinue).$Name
        if ($null -ne $existing -and "$existing" -eq "$Value") { return }
        Set-ItemProperty -Path $Path -Name $Name -Value $Value -Type $Type -Force -EA Stop
    }

    function Remove-RegKey([string]$Path) {
        if (Test-Path $Path) { Remove-Item -Path $Path -Recurse -Force -EA Stop }
    }

    function Set-ServiceState {
        param([string]$Name, [string]$StartupType)
        foreach ($svc in @(Get-Service -Name $Name -EA SilentlyContinue)) {
            if ($StartupType -eq "Disabled" -and $svc.Status -eq "Running") {
                Stop-Service -Name $svc.Name -Force -EA SilentlyContinue
            }
            if ("$($svc.StartType)" -ne $StartupType) {
                Set-Service -Name $svc.Name -StartupType $StartupType -EA Stop
            }
        }
    }

    function Set-PowerValue {
        param([string]$Subgroup, [string]$Setting, [int]$Value)
        powercfg /setacvalueindex SCHEME_CURRENT $Subgroup $Setting $Value | Out-Null
        if ($LASTEXITCODE -ne 0) { throw "powercfg rejected $Setting" }
        powercfg /setdcvalueindex SCHEME_CURRENT $Subgroup $Setting $Value | Out-Null
        powercfg /setactive SCHEME_CURRENT | Out-Null
    }

    function Set-BootOption {
        param([string]$Name, [string]$Value)
        bcdedit /set $Name $Value | Out-Null
        if ($LASTEXITCODE -ne 0) { throw "bcdedit rejected $Name" }
    }
""")

RESTORE_POINT_STEP = textwrap.dedent("""\
    Write-Step "Restore Point"
    try {
        $recent = Get-ComputerRestorePoint -EA SilentlyContinue |
            Where-Object { $_.ConvertToDateTime($_.CreationTime) -gt (Get-Date).AddMinutes(-1440) }
        if ($recent) {
            Write-OK "Recent restore point found (within 24h)"
        } else {
            Enable-ComputerRestore -Drive "$env:SystemDrive\\" -EA SilentlyContinue
            Checkpoint-Computer -Description "Loadout pre-optimization" -RestorePointType MODIFY_SETTINGS -EA Stop
            Write-OK "Restore point created"
        }
    } catch {
        Write-Warn "Restore point failed: $($_.Exception.Message)"
    }
""")

HARDWARE_STEP = textwrap.dedent("""\
    Write-Step "Hardware"
    $cpuName = (Get-CimInstance Win32_Processor | Select-Object -First 1).Name
    $gpuName = (Get-CimInstance Win32_VideoController | Select-Object -First 1).Name
    Write-Host "  CPU: $cpuName"
    Write-Host "  GPU: $gpuName"
""")

FOOTER = textwrap.dedent("""\
    Write-Host ""
    Write-Host "Done: $($script:Succeeded) succeeded, $($script:Warnings) warnings, $($script:Failed) failed" -ForegroundColor Cyan
    if ($script:Failed -gt 0) {
        Write-Host "Some steps failed. Review the output above." -ForegroundColor Yellow
    }
    Write-Host "Restart your PC to apply all changes."
""")

ALREADY_INSTALLED_PATTERN = (
    "No available upgrade found|No newer package versions are available|already installed"
)


@dataclass(frozen=True, slots=True)
class CompilerConfig:
    build_id: str = __version__
    # None: take the timestamp from SOURCE_DATE_EPOCH (default 0).
    generated_at: datetime | None = None
    script_name: str = "loadout-setup.ps1"
    share_url: str | None = None


@dataclass(frozen=True, slots=True)
class CompiledScript:
    text: str
    plan: ScriptPlan

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.text.encode("utf-8")).hexdigest()


def ps_quote(value: str) -> str:
    """Double-quoted PowerShell string literal with interpolation disabled."""
    escaped = value.replace("`", "``").replace('"', '`"').replace("$", "`$")
    return f'"{escaped}"'


def generated_timestamp(config: CompilerConfig) -> str:
    moment = config.generated_at
    if moment is None:
        epoch = int(os.environ.get("SOURCE_DATE_EPOCH", "0"))
        moment = datetime.fromtimestamp(epoch, tz=timezone.utc)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def compile_selection(
    selection: SelectionState,
    catalog: SoftwareCatalog,
    dns_provider: str = "cloudflare",
    *,
    policy: Policy = DEFAULT_POLICY,
    config: CompilerConfig | None = None,
    logger: StructuredLogger | None = None,
) -> CompiledScript:
    """Compile a selection into setup script text. Never raises for data issues."""
    config = config or CompilerConfig()
    plan = plan_selection(selection, catalog, dns_provider, policy=policy, logger=logger)
    text = render_script(plan, config)
    if logger is not None:
        logger.log(
            operation="compile_selection",
            component="compiler",
            message="Script compiled.",
            extra={
                "risk_profile": plan.risk_profile,
                "optimizations": len(plan.optimizations),
                "packages": len(plan.packages),
                "missing_packages": len(plan.missing_packages),
                "blocked": len(plan.blocked),
            },
        )
    return CompiledScript(text=text, plan=plan)


def compile_script(
    selection: SelectionState,
    catalog: SoftwareCatalog,
    dns_provider: str = "cloudflare",
    *,
    policy: Policy = DEFAULT_POLICY,
    config: CompilerConfig | None = None,
    logger: StructuredLogger | None = None,
) -> str:
    return compile_selection(
        selection, catalog, dns_provider, policy=policy, config=config, logger=logger
    ).text


def render_script(plan: ScriptPlan, config: CompilerConfig) -> str:
    lines: list[str] = []
    if plan.has_ludicrous:
        lines.extend(DANGER_BANNER.splitlines())
    lines.append("#Requires -RunAsAdministrator")
    lines.extend(_header(plan, config))
    lines.append("")
    lines.extend(_config_block(plan, config))
    lines.append("")
    lines.extend(HELPER_FUNCTIONS.splitlines())
    lines.append("")

    step_total = 2 + len(plan.sections) + (1 if plan.restore_point else 0)
    lines.append(f"$script:StepTotal = {step_total}")
    lines.append("")
    lines.extend(HARDWARE_STEP.splitlines())
    if plan.restore_point:
        lines.append("")
        lines.extend(RESTORE_POINT_STEP.splitlines())

    for section in plan.sections:
        lines.append("")
        lines.extend(_render_section(section, plan))

    lines.append("")
    lines.extend(_install_section(plan))
    lines.append("")
    lines.extend(FOOTER.splitlines())
    lines.extend(_trailing_notes(plan))
    return "\n".join(lines) + "\n"


def _header(plan: ScriptPlan, config: CompilerConfig) -> list[str]:
    hardware = plan.hardware
    lines = [
        "<#",
        ".SYNOPSIS",
        f"    {config.script_name}: Windows optimization and software setup",
        ".DESCRIPTION",
        f"    Core: {CPU_LABELS[hardware.cpu]} + {GPU_LABELS[hardware.gpu]}",
        f"    Build: {config.build_id}",
        f"    Generated: {generated_timestamp(config)}",
        f"    Risk profile: {plan.risk_profile}",
    ]
    if config.share_url:
        lines.append(f"    Share: {_comment_text(config.share_url)}")
    lines.append("#>")
    return lines


def _config_block(plan: ScriptPlan, config: CompilerConfig) -> list[str]:
    payload: dict[str, Any] = {
        "build": config.build_id,
        "generated": generated_timestamp(config),
        "hardware": {
            "cpu": plan.hardware.cpu,
            "gpu": plan.hardware.gpu,
            "peripherals": list(plan.hardware.peripherals),
            "monitorSoftware": list(plan.hardware.monitor_software),
        },
        "dns": plan.dns_provider,
        "optimizations": list(plan.optimizations),
        "packages": [item.key for item in plan.packages],
        "missing_packages": list(plan.missing_packages),
        "risk_profile": plan.risk_profile,
        "restore_point_required": plan.restore_point_required,
    }
    body = json.dumps(payload, indent=2, sort_keys=True)
    return ["$Config = @'", *body.splitlines(), "'@ | ConvertFrom-Json"]


def _render_section(section: SectionPlan, plan: ScriptPlan) -> list[str]:
    lines = [f"# === {section.title} ===", f"Write-Step {ps_quote(section.title)}"]
    if not section.entries:
        lines.append("# (no changes)")
        return lines
    for entry in section.entries:
        lines.extend(render_action(entry.action, plan))
    return lines


def render_action(action: Action, plan: ScriptPlan) -> list[str]:
    if isinstance(action, Notice):
        return _render_notice(action)
    if isinstance(action, ManualStep):
        return _render_manual_step(action)
    render = _RENDERERS[type(action)]
    body = render(action, plan)
    label = _label(action, plan)
    if isinstance(action, RunScript) and action.native:
        body = [*body, 'if ($LASTEXITCODE -ne 0) { throw "exit code $LASTEXITCODE" }']
    return _guarded(label, body, report=not getattr(action, "self_reporting", False))


def _guarded(label: str, body: list[str], *, report: bool = True) -> list[str]:
    lines = ["try {"]
    lines.extend(f"{INDENT}{line}" if line else "" for line in body)
    if report:
        lines.append(f"{INDENT}Write-OK {ps_quote(label)}")
    lines.append("} catch {")
    lines.append(f'{INDENT}Write-Fail "{_escape(label)}: $($_.Exception.Message)"')
    lines.append("}")
    return lines


def _label(action: Action, plan: ScriptPlan) -> str:
    if isinstance(action, SetDns):
        return f"DNS set to {plan.dns.name} ({plan.dns.primary}, {plan.dns.secondary})"
    return action.label  # type: ignore[union-attr]


def _escape(value: str) -> str:
    return ps_quote(value)[1:-1]


def _comment_text(value: str) -> str:
    """Caller text made safe for a comment: one line, no block-comment terminator."""
    return value.encode("unicode_escape").decode("ascii").replace("#>", "#\\>")


def registry_literal(value: RegistryValue) -> str:
    if value.kind == "String":
        return ps_quote(str(value.value))
    number = int(value.value)
    if number > 0x7FFFFFFF:
        return hex(number)
    return str(number)


def _render_set_registry(action: SetRegistry, plan: ScriptPlan) -> list[str]:
    lines = []
    for value in action.values:
        line = f"Set-Reg {ps_quote(action.path)} {ps_quote(value.name)} {registry_literal(value)}"
        if value.kind != "DWORD":
            line += f' -Type {"String" if value.kind == "String" else "QWord"}'
        lines.append(line)
    return lines


def _render_delete_key(action: DeleteRegistryKey, plan: ScriptPlan) -> list[str]:
    return [f"Remove-RegKey {ps_quote(path)}" for path in action.paths]


def _render_service(action: ConfigureService, plan: ScriptPlan) -> list[str]:
    return [f"Set-ServiceState {ps_quote(name)} {ps_quote(action.startup)}" for name in action.names]


def _render_power_setting(action: PowerSetting, plan: ScriptPlan) -> list[str]:
    return [f"Set-PowerValue {ps_quote(action.subgroup)} {ps_quote(action.setting)} {action.value}"]


def _render_power_plan(action: ActivatePowerPlan, plan: ScriptPlan) -> list[str]:
    if action.duplicate_name is None:
        return [
            f"powercfg /setactive {action.scheme} | Out-Null",
            f'if ($LASTEXITCODE -ne 0) {{ throw "power plan {action.scheme} not available" }}',
        ]
    name = ps_quote(action.duplicate_name)
    return [
        f"$plan = powercfg /list | Select-String -SimpleMatch {name} | Select-Object -First 1",
        "if (-not $plan) {",
        f"{INDENT}powercfg /duplicatescheme {action.scheme} | Out-Null",
        f"{INDENT}$plan = powercfg /list | Select-String -SimpleMatch {name} | Select-Object -First 1",
        "}",
        "if (-not $plan -or $plan.Line -notmatch '([0-9a-fA-F-]{36})') {",
        f"{INDENT}throw {ps_quote(action.duplicate_name + ' plan unavailable')}",
        "}",
        "powercfg /setactive $Matches[1] | Out-Null",
    ]


def _render_boot_option(action: BootOption, plan: ScriptPlan) -> list[str]:
    return [f"Set-BootOption {ps_quote(name)} {ps_quote(value)}" for name, value in action.settings]


def _render_remove_appx(action: RemoveAppx, plan: ScriptPlan) -> list[str]:
    names = ", ".join(ps_quote(name) for name in action.packages)
    return [
        f"foreach ($app in @({names})) {{",
        f"{INDENT}Get-AppxPackage -Name $app -AllUsers -EA SilentlyContinue |",
        f"{INDENT}{INDENT}Remove-AppxPackage -AllUsers -EA SilentlyContinue",
        "}",
    ]


def _render_dns(action: SetDns, plan: ScriptPlan) -> list[str]:
    servers = f"{ps_quote(plan.dns.primary)}, {ps_quote(plan.dns.secondary)}"
    return [
        'foreach ($adapter in (Get-NetAdapter | Where-Object {$_.Status -eq "Up"})) {',
        f"{INDENT}Set-DnsClientServerAddress -InterfaceIndex $adapter.ifIndex "
        f"-ServerAddresses @({servers}) -EA Stop",
        "}",
    ]


def _render_environment(action: SetEnvironment, plan: ScriptPlan) -> list[str]:
    return [
        "[Environment]::SetEnvironmentVariable("
        f"{ps_quote(action.name)}, {ps_quote(action.value)}, {ps_quote(action.scope)})"
    ]


def _render_run_script(action: RunScript, plan: ScriptPlan) -> list[str]:
    return list(action.lines)


def _render_notice(action: Notice) -> list[str]:
    if action.level == "warn":
        return [f"Write-Warn {ps_quote(action.message)}"]
    if action.level == "danger":
        return [f"Write-Host {ps_quote('  [DANGER] ' + action.message)} -ForegroundColor Red"]
    return [f"Write-Host {ps_quote('  [INFO] ' + action.message)} -ForegroundColor DarkGray"]


def _render_manual_step(action: ManualStep) -> list[str]:
    lines = [f"# Manual step: {action.title}"]
    lines.append(f"Write-Warn {ps_quote('Manual step: ' + action.title)}")
    lines.extend(f"Write-Host {ps_quote('    ' + line)}" for line in action.lines)
    return lines


_RENDERERS: dict[type, Callable[[Any, ScriptPlan], list[str]]] = {
    SetRegistry: _render_set_registry,
    DeleteRegistryKey: _render_delete_key,
    ConfigureService: _render_service,
    PowerSetting: _render_power_setting,
    ActivatePowerPlan: _render_power_plan,
    BootOption: _render_boot_option,
    RemoveAppx: _render_remove_appx,
    SetDns: _render_dns,
    SetEnvironment: _render_environment,
    RunScript: _render_run_script,
}


def _install_section(plan: ScriptPlan) -> list[str]:
    lines = ["# === Software ===", 'Write-Step "Software"']
    if not plan.packages:
        lines.append('Write-Host "  No packages selected"')
        return lines
    lines.append("if (-not (Get-Command winget -EA SilentlyContinue)) {")
    lines.append(f'{INDENT}Write-Fail "winget not found; software installs skipped"')
    lines.append("} else {")
    for item in plan.packages:
        name = item.package.name
        lines.extend(
            f"{INDENT}{line}"
            for line in [
                f"Write-Host {ps_quote('  Installing ' + name + '...')}",
                f"$output = winget install --id {ps_quote(item.package.installer_id)} --exact "
                "--silent --accept-package-agreements --accept-source-agreements 2>&1",
                "if ($LASTEXITCODE -eq 0) {",
                f"{INDENT}Write-OK {ps_quote(name + ' installed')}",
                f'}} elseif ("$output" -match "{ALREADY_INSTALLED_PATTERN}") {{',
                f"{INDENT}Write-OK {ps_quote(name + ' already installed')}",
                "} else {",
                f'{INDENT}Write-Fail "{_escape(name)} install failed (exit $LASTEXITCODE)"',
                f'{INDENT}$output | ForEach-Object {{ Write-Host "      $_" }}',
                "}",
            ]
        )
    lines.append("}")
    return lines


def _trailing_notes(plan: ScriptPlan) -> list[str]:
    lines: list[str] = []
    if plan.missing_packages:
        lines.extend(["", "# Missing software mappings:"])
        lines.extend(f"#   {_comment_text(key)}" for key in plan.missing_packages)
    if plan.blocked:
        lines.extend(["", "# Skipped ludicrous optimizations (not acknowledged):"])
        lines.extend(f"#   {_comment_text(key)}" for key in plan.blocked)
    if plan.unmapped:
        lines.extend(["", "# Optimizations without actions:"])
        lines.extend(f"#   {_comment_text(key)}" for key in plan.unmapped)
    return lines
