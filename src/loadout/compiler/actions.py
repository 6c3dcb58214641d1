"""Declarative action descriptors and the per-key action table.

Each optimization key maps to an ``ActionPlan``: the section it belongs to
and an ordered tuple of idempotent actions. Renderers in
``emit_powershell`` interpret one action kind each, so adding a key never
means adding emission code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from loadout.models import GpuType

SectionName = Literal["system", "performance", "power", "network", "privacy", "audio"]
RegistryKind = Literal["DWORD", "QWORD", "String"]
StartupType = Literal["Disabled", "Manual"]
NoticeLevel = Literal["info", "warn", "danger"]

SECTION_ORDER: tuple[SectionName, ...] = (
    "system",
    "performance",
    "power",
    "network",
    "privacy",
    "audio",
)

SECTION_TITLES: dict[SectionName, str] = {
    "system": "System",
    "performance": "Performance",
    "power": "Power",
    "network": "Network",
    "privacy": "Privacy",
    "audio": "Audio",
}

# Keys handled outside the section table.
SPECIAL_KEYS = frozenset({"restore_point"})


@dataclass(frozen=True, slots=True)
class RegistryValue:
    name: str
    value: int | str
    kind: RegistryKind = "DWORD"


def dword(name: str, value: int) -> RegistryValue:
    return RegistryValue(name=name, value=value, kind="DWORD")


def string(name: str, value: str) -> RegistryValue:
    return RegistryValue(name=name, value=value, kind="String")


@dataclass(frozen=True, slots=True)
class SetRegistry:
    """Set each value under ``path`` only if it is absent or different."""

    path: str
    values: tuple[RegistryValue, ...]
    label: str


@dataclass(frozen=True, slots=True)
class DeleteRegistryKey:
    paths: tuple[str, ...]
    label: str


@dataclass(frozen=True, slots=True)
class ConfigureService:
    """Stop each service and set its startup type. ``wildcard`` names are -like patterns."""

    names: tuple[str, ...]
    label: str
    startup: StartupType = "Disabled"
    wildcard: bool = False


@dataclass(frozen=True, slots=True)
class PowerSetting:
    subgroup: str
    setting: str
    value: int
    label: str


@dataclass(frozen=True, slots=True)
class ActivatePowerPlan:
    scheme: str
    label: str
    # When set, the scheme is a template: duplicate it and activate the copy by name.
    duplicate_name: str | None = None


@dataclass(frozen=True, slots=True)
class BootOption:
    settings: tuple[tuple[str, str], ...]
    label: str


@dataclass(frozen=True, slots=True)
class RemoveAppx:
    packages: tuple[str, ...]
    label: str


@dataclass(frozen=True, slots=True)
class SetDns:
    """Point active adapters at the selected DNS provider (resolved at compile time)."""

    label: str = "DNS"


@dataclass(frozen=True, slots=True)
class SetEnvironment:
    name: str
    value: str
    label: str
    scope: Literal["Machine", "User"] = "Machine"


@dataclass(frozen=True, slots=True)
class RunScript:
    lines: tuple[str, ...]
    label: str
    # Native commands: fail the action when the last exit code is non-zero.
    native: bool = False
    # The lines report their own outcome; no trailing success line.
    self_reporting: bool = False


@dataclass(frozen=True, slots=True)
class ManualStep:
    title: str
    lines: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Notice:
    message: str
    level: NoticeLevel = "info"


Action = Union[
    SetRegistry,
    DeleteRegistryKey,
    ConfigureService,
    PowerSetting,
    ActivatePowerPlan,
    BootOption,
    RemoveAppx,
    SetDns,
    SetEnvironment,
    RunScript,
    ManualStep,
    Notice,
]


@dataclass(frozen=True, slots=True)
class ActionPlan:
    section: SectionName
    actions: tuple[Action, ...]
    superseded_by: tuple[str, ...] = ()
    requires_gpu: GpuType | None = None
    danger: str | None = None


def _plan(section: SectionName, *actions: Action, **options: object) -> ActionPlan:
    return ActionPlan(section, actions, **options)  # type: ignore[arg-type]


_ACTIVE_ADAPTERS = 'Get-NetAdapter | Where-Object {$_.Status -eq "Up"}'
_ACTIVE_GPU = (
    '$gpuDevice = Get-PnpDevice -Class Display | Where-Object {$_.Status -eq "OK"} '
    "| Select-Object -First 1"
)
_DISPLAY_CLASS = (
    r"HKLM:\SYSTEM\CurrentControlSet\Control\Class\{4d36e968-e325-11ce-bfc1-08002be10318}"
)
_MEMORY_MANAGEMENT = r"HKLM:\SYSTEM\CurrentControlSet\Control\Session Manager\Memory Management"
_KERNEL = r"HKLM:\SYSTEM\CurrentControlSet\Control\Session Manager\kernel"
_PRIORITY_CONTROL = r"HKLM:\SYSTEM\CurrentControlSet\Control\PriorityControl"
_SYSTEM_PROFILE = r"HKLM:\SOFTWARE\Microsoft\Windows NT\CurrentVersion\Multimedia\SystemProfile"
_GAME_CONFIG_STORE = r"HKCU:\System\GameConfigStore"
_GAME_BAR = r"HKCU:\Software\Microsoft\GameBar"
_CONTENT_DELIVERY = r"HKCU:\Software\Microsoft\Windows\CurrentVersion\ContentDeliveryManager"
_EDGE_POLICIES = r"HKLM:\SOFTWARE\Policies\Microsoft\Edge"

# Actions shared by more than one key; emitted once per section.
_USB_SELECTIVE_SUSPEND = SetRegistry(
    r"HKLM:\SYSTEM\CurrentControlSet\Services\USB\DisableSelectiveSuspend",
    (dword("DisableSelectiveSuspend", 1),),
    "USB selective suspend disabled",
)
_NAGLE = RunScript(
    (
        f"foreach ($adapter in ({_ACTIVE_ADAPTERS})) {{",
        r'    $path = "HKLM:\SYSTEM\CurrentControlSet\Services\Tcpip\Parameters\Interfaces\$($adapter.InterfaceGuid)"',
        '    Set-Reg $path "TcpAckFrequency" 1',
        '    Set-Reg $path "TCPNoDelay" 1',
        "}",
    ),
    "Nagle algorithm disabled",
)
_AUDIO_DUCKING = SetRegistry(
    r"HKCU:\Software\Microsoft\Multimedia\Audio",
    (dword("UserDuckingPreference", 3),),
    "Audio ducking disabled",
)
_SYSTEM_SOUND_SCHEME = SetRegistry(
    r"HKCU:\AppEvents\Schemes",
    (string("(Default)", ".None"),),
    "System sound scheme set to none",
)

ACTION_PLANS: dict[str, ActionPlan] = {
    # System
    "pagefile": _plan(
        "system",
        RunScript(
            (
                "$ramGb = [math]::Round((Get-CimInstance Win32_PhysicalMemory "
                "| Measure-Object Capacity -Sum).Sum / 1GB)",
                "if ($ramGb -ge 16) {",
                "    $size = if ($ramGb -ge 32) { 4096 } else { 8192 }",
                "    $cs = Get-CimInstance Win32_ComputerSystem",
                "    if ($cs.AutomaticManagedPagefile) {",
                "        Set-CimInstance -InputObject $cs -Property @{AutomaticManagedPagefile = $false}",
                "    }",
                "    $pf = Get-CimInstance Win32_PageFileSetting -EA SilentlyContinue "
                '| Where-Object {$_.Name -like "C:*"} | Select-Object -First 1',
                "    if ($pf) {",
                "        Set-CimInstance -InputObject $pf -Property @{InitialSize = $size; MaximumSize = $size}",
                '        Write-OK "Page file set to ${size}MB fixed"',
                '    } else { Write-Warn "Page file setting not found" }',
                '} else { Write-Warn "Less than 16GB RAM: page file left on automatic" }',
            ),
            "Fixed page file",
            self_reporting=True,
        ),
    ),
    "fastboot": _plan(
        "system",
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Control\Session Manager\Power",
            (dword("HiberbootEnabled", 0),),
            "Fast startup disabled",
        ),
    ),
    "explorer_speed": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Software\Classes\Local Settings\Software\Microsoft\Windows\Shell\Bags\AllFolders\Shell",
            (string("FolderType", "NotSpecified"),),
            "Explorer folder-type detection disabled",
        ),
    ),
    "temp_purge": _plan(
        "system",
        RunScript(
            (
                r'Remove-Item "$env:TEMP\*" -Recurse -Force -EA SilentlyContinue',
                r'Remove-Item "$env:WINDIR\Temp\*" -Recurse -Force -EA SilentlyContinue',
            ),
            "Temp folders purged",
        ),
    ),
    "classic_menu": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Software\Classes\CLSID\{86ca1aa0-34aa-4e8b-a509-50c905bae2a2}\InprocServer32",
            (string("(Default)", ""),),
            "Classic context menu enabled",
        ),
    ),
    "storage_sense": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\CurrentVersion\StorageSense\Parameters\StoragePolicy",
            (dword("01", 0),),
            "Storage Sense disabled",
        ),
    ),
    "end_task": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\CurrentVersion\Explorer\Advanced\TaskbarDeveloperSettings",
            (dword("TaskbarEndTask", 1),),
            "End Task enabled in taskbar",
        ),
    ),
    "explorer_cleanup": _plan(
        "system",
        DeleteRegistryKey(
            (
                r"HKLM:\SOFTWARE\Microsoft\Windows\CurrentVersion\Explorer\Desktop\NameSpace"
                r"\{f874310e-b6b7-47dc-bc84-b9e6b38f5903}",
                r"HKLM:\SOFTWARE\Microsoft\Windows\CurrentVersion\Explorer\Desktop\NameSpace"
                r"\{e88865ea-0e1c-4e20-9aa6-edcd0212c87c}",
            ),
            "Explorer Home and Gallery removed",
        ),
    ),
    "notifications_off": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Software\Policies\Microsoft\Windows\Explorer",
            (dword("DisableNotificationCenter", 1),),
            "Notification center disabled",
        ),
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\CurrentVersion\PushNotifications",
            (dword("ToastEnabled", 0),),
            "Toast notifications disabled",
        ),
    ),
    "ps7_telemetry": _plan(
        "system",
        SetEnvironment("POWERSHELL_TELEMETRY_OPTOUT", "1", "PowerShell 7 telemetry disabled"),
    ),
    "filesystem_perf": _plan(
        "system",
        RunScript(
            (
                "fsutil behavior set disablelastaccess 1 | Out-Null",
                'if ($LASTEXITCODE -ne 0) { throw "fsutil rejected disablelastaccess" }',
                "fsutil behavior set disable8dot3 1 | Out-Null",
            ),
            "NTFS last-access and 8.3 names disabled",
            native=True,
        ),
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Control\FileSystem",
            (dword("NtfsMemoryUsage", 2),),
            "NTFS memory usage raised",
        ),
    ),
    "mouse_accel": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Control Panel\Mouse",
            (
                string("MouseSpeed", "0"),
                string("MouseThreshold1", "0"),
                string("MouseThreshold2", "0"),
            ),
            "Mouse acceleration disabled",
        ),
    ),
    "keyboard_response": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Control Panel\Keyboard",
            (string("KeyboardDelay", "0"), string("KeyboardSpeed", "31")),
            "Keyboard delay minimized",
        ),
    ),
    "accessibility_shortcuts": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Control Panel\Accessibility\StickyKeys",
            (string("Flags", "506"),),
            "Sticky Keys shortcut disabled",
        ),
        SetRegistry(
            r"HKCU:\Control Panel\Accessibility\Keyboard Response",
            (string("Flags", "122"),),
            "Filter Keys shortcut disabled",
        ),
        SetRegistry(
            r"HKCU:\Control Panel\Accessibility\ToggleKeys",
            (string("Flags", "58"),),
            "Toggle Keys shortcut disabled",
        ),
        SetRegistry(
            r"HKCU:\Control Panel\Accessibility\MouseKeys",
            (string("Flags", "58"),),
            "Mouse Keys shortcut disabled",
        ),
    ),
    "input_buffer": _plan(
        "system",
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Services\mouclass\Parameters",
            (dword("MouseDataQueueSize", 32),),
            "Mouse input buffer increased",
        ),
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Services\kbdclass\Parameters",
            (dword("KeyboardDataQueueSize", 32),),
            "Keyboard input buffer increased",
        ),
    ),
    "display_perf": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\CurrentVersion\Explorer\VisualEffects",
            (dword("VisualFXSetting", 2),),
            "Visual effects set to performance",
        ),
    ),
    "dwm_perf": _plan(
        "system",
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\DWM",
            (
                dword("AccentColorInactive", 1),
                dword("ColorPrevalence", 0),
                dword("EnableAeroPeek", 0),
            ),
            "DWM performance optimized",
        ),
    ),
    "services_search_off": _plan(
        "system",
        ConfigureService(("WSearch",), "Windows Search set to manual", startup="Manual"),
    ),
    # Performance
    "gamedvr": _plan(
        "performance",
        SetRegistry(_GAME_CONFIG_STORE, (dword("GameDVR_Enabled", 0),), "Game DVR disabled"),
        SetRegistry(
            r"HKLM:\SOFTWARE\Policies\Microsoft\Windows\GameDVR",
            (dword("AllowGameDVR", 0),),
            "Game DVR policy disabled",
        ),
    ),
    "game_bar": _plan(
        "performance",
        SetRegistry(
            _GAME_BAR,
            (dword("ShowStartupPanel", 0), dword("GamePanelStartupTipIndex", 3)),
            "Game Bar overlays disabled",
        ),
    ),
    "hags": _plan(
        "performance",
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Control\GraphicsDrivers",
            (dword("HwSchMode", 2),),
            "Hardware accelerated GPU scheduling enabled",
        ),
    ),
    "fso_disable": _plan(
        "performance",
        SetRegistry(
            _GAME_CONFIG_STORE,
            (
                dword("GameDVR_FSEBehaviorMode", 2),
                dword("GameDVR_HonorUserFSEBehaviorMode", 1),
                dword("GameDVR_FSEBehavior", 2),
            ),
            "Fullscreen optimizations disabled",
        ),
    ),
    "timer": _plan(
        "performance",
        ManualStep(
            "Timer Resolution",
            (
                "Run a 0.5ms timer resolution tool before launching games.",
                "Keep it running during gameplay for smoother frame pacing.",
            ),
        ),
    ),
    "msi_mode": _plan(
        "performance",
        RunScript(
            (
                _ACTIVE_GPU,
                'if (-not $gpuDevice) { throw "no active display adapter found" }',
                r'$msiPath = "HKLM:\SYSTEM\CurrentControlSet\Enum\$($gpuDevice.InstanceId)'
                r'\Device Parameters\Interrupt Management\MessageSignaledInterruptProperties"',
                'Set-Reg $msiPath "MSISupported" 1',
            ),
            "MSI mode enabled for GPU",
        ),
    ),
    "hpet": _plan(
        "performance",
        BootOption(
            (("useplatformclock", "false"), ("disabledynamictick", "yes")),
            "HPET disabled (reboot required)",
        ),
    ),
    "multiplane_overlay": _plan(
        "performance",
        SetRegistry(
            r"HKLM:\SOFTWARE\Microsoft\Windows\Dwm",
            (dword("OverlayTestMode", 5),),
            "Multiplane overlay disabled",
        ),
    ),
    "process_mitigation": _plan(
        "performance",
        SetRegistry(
            _KERNEL,
            (dword("KernelShadowStacksForceDisabled", 1),),
            "Process mitigations disabled (security reduced)",
        ),
    ),
    "interrupt_affinity": _plan(
        "performance",
        RunScript(
            (
                _ACTIVE_GPU,
                'if (-not $gpuDevice) { throw "no active display adapter found" }',
                r'$affinityPath = "HKLM:\SYSTEM\CurrentControlSet\Enum\$($gpuDevice.InstanceId)'
                r'\Device Parameters\Interrupt Management\Affinity Policy"',
                'Set-Reg $affinityPath "DevicePolicy" 3',
                'Set-Reg $affinityPath "AssignmentSetOverride" 1',
            ),
            "GPU interrupt affinity pinned",
        ),
    ),
    "native_nvme": _plan(
        "performance",
        RunScript(
            (
                "$osBuild = [int](Get-CimInstance Win32_OperatingSystem).BuildNumber",
                'if ($osBuild -lt 26100) { throw "requires Windows 11 24H2 or newer" }',
                r'Set-Reg "HKLM:\SYSTEM\CurrentControlSet\Policies\Microsoft\FeatureManagement\Overrides" "1176759950" 1',
            ),
            "Native NVMe enabled (reboot required)",
        ),
    ),
    "smt_disable": _plan(
        "performance",
        RunScript(
            (
                "$cores = (Get-CimInstance Win32_Processor | Measure-Object NumberOfCores -Sum).Sum",
                "bcdedit /set numproc $cores | Out-Null",
            ),
            "SMT disabled (reboot required)",
            native=True,
        ),
    ),
    "mmcss_gaming": _plan(
        "performance",
        SetRegistry(
            _SYSTEM_PROFILE + r"\Tasks\Games",
            (
                dword("GPU Priority", 8),
                dword("Priority", 6),
                string("Scheduling Category", "High"),
                string("SFIO Priority", "High"),
            ),
            "MMCSS gaming priority configured",
        ),
    ),
    "scheduler_opt": _plan(
        "performance",
        SetRegistry(
            _PRIORITY_CONTROL,
            (dword("Win32PrioritySeparation", 26), dword("IRQ8Priority", 1)),
            "Scheduler optimized for foreground games",
        ),
    ),
    "game_mode": _plan(
        "performance",
        SetRegistry(
            _GAME_BAR,
            (dword("AllowAutoGameMode", 1), dword("AutoGameModeEnabled", 1)),
            "Game Mode enabled",
        ),
    ),
    "timer_registry": _plan(
        "performance",
        SetRegistry(
            _KERNEL,
            (dword("GlobalTimerResolutionRequests", 1),),
            "Global timer resolution requests enabled",
        ),
        SetRegistry(
            _SYSTEM_PROFILE,
            (dword("SystemResponsiveness", 0),),
            "System responsiveness reserved for games",
        ),
    ),
    "sysmain_disable": _plan(
        "performance",
        ConfigureService(("SysMain",), "SysMain disabled"),
    ),
    "memory_gaming": _plan(
        "performance",
        SetRegistry(
            _MEMORY_MANAGEMENT,
            (dword("DisablePagingExecutive", 1), dword("LargeSystemCache", 0)),
            "Kernel paging disabled",
        ),
    ),
    "priority_boost_off": _plan(
        "performance",
        SetRegistry(
            _PRIORITY_CONTROL,
            (dword("Win32PriorityBoost", 0),),
            "Priority boost disabled",
        ),
    ),
    "core_isolation_off": _plan(
        "performance",
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Control\DeviceGuard",
            (dword("EnableVirtualizationBasedSecurity", 0),),
            "Virtualization-based security disabled",
        ),
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Control\DeviceGuard\Scenarios"
            r"\HypervisorEnforcedCodeIntegrity",
            (dword("Enabled", 0),),
            "Memory integrity disabled (reboot required)",
        ),
        danger="Disabling Core Isolation (VBS/HVCI)",
    ),
    "spectre_meltdown_off": _plan(
        "performance",
        SetRegistry(
            _MEMORY_MANAGEMENT,
            (dword("FeatureSettingsOverride", 3), dword("FeatureSettingsOverrideMask", 3)),
            "Spectre/Meltdown mitigations disabled (reboot required)",
        ),
        danger="Disabling CPU side-channel mitigations (Spectre V1/V2, Meltdown)",
    ),
    "kernel_mitigations_off": _plan(
        "performance",
        BootOption(
            (("isolatedcontext", "No"), ("allowedinmemorysettings", "0x0")),
            "Kernel isolated context disabled",
        ),
        SetRegistry(
            _KERNEL,
            (dword("DisableExceptionChainValidation", 1), dword("KernelSEHOPEnabled", 0)),
            "Kernel exception chain validation disabled (reboot required)",
        ),
        danger="Disabling kernel exploit protections",
    ),
    "dep_off": _plan(
        "performance",
        BootOption((("nx", "AlwaysOff"),), "DEP disabled (reboot required)"),
        Notice("Re-enable DEP with: bcdedit /set nx OptIn", "info"),
        danger="Disabling Data Execution Prevention",
    ),
    "amd_ulps_disable": _plan(
        "performance",
        RunScript(
            (
                f'Get-ChildItem "{_DISPLAY_CLASS}" -EA Stop '
                "| Where-Object {$_.PSChildName -match '^\\d{4}$'} | ForEach-Object {",
                '    if ($null -ne (Get-ItemProperty -Path $_.PSPath -Name "EnableULPS" -EA SilentlyContinue)) {',
                '        Set-Reg $_.PSPath "EnableULPS" 0',
                "    }",
                "}",
            ),
            "AMD ULPS disabled",
        ),
        requires_gpu="amd",
        danger="Disabling AMD ultra-low power state: higher idle power and heat",
    ),
    "nvidia_p0_state": _plan(
        "performance",
        RunScript(
            (
                f'Get-ChildItem "{_DISPLAY_CLASS}" -EA Stop '
                "| Where-Object {$_.PSChildName -match '^\\d{4}$'} | ForEach-Object {",
                '    $provider = (Get-ItemProperty -Path $_.PSPath -Name "ProviderName" -EA SilentlyContinue).ProviderName',
                '    if ($provider -like "NVIDIA*") { Set-Reg $_.PSPath "DisableDynamicPstate" 1 }',
                "}",
            ),
            "NVIDIA GPU locked to P0 state",
        ),
        requires_gpu="nvidia",
        danger="Locking the GPU to its maximum performance state: constant power draw",
    ),
    # Power
    "power_plan": _plan(
        "power",
        ActivatePowerPlan("8c5e7fda-e8bf-4a96-9a85-a6e23a8c635c", "High Performance power plan enabled"),
        superseded_by=("ultimate_perf",),
    ),
    "ultimate_perf": _plan(
        "power",
        ActivatePowerPlan(
            "e9a42b02-d5df-448d-aa00-03f14749eb61",
            "Ultimate Performance power plan enabled",
            duplicate_name="Ultimate Performance",
        ),
    ),
    "usb_power": _plan("power", _USB_SELECTIVE_SUSPEND),
    "usb_suspend": _plan(
        "power",
        _USB_SELECTIVE_SUSPEND,
        PowerSetting(
            "2a737441-1930-4402-8d77-b2bebba308a3",
            "48e6b7a6-50f5-4782-a5d4-53bb8f07e226",
            0,
            "USB selective suspend power setting disabled",
        ),
    ),
    "pcie_power": _plan(
        "power",
        PowerSetting(
            "sub_pciexpress",
            "ee12f906-d166-476a-8f3a-af931b6e9d31",
            0,
            "PCIe link state power management disabled",
        ),
    ),
    "core_parking": _plan(
        "power",
        PowerSetting("sub_processor", "CPMINCORES", 100, "Core parking disabled"),
    ),
    "min_processor_state": _plan(
        "power",
        PowerSetting("sub_processor", "PROCTHROTTLEMIN", 5, "Minimum processor state set to 5%"),
    ),
    "hibernation_disable": _plan(
        "power",
        RunScript(("powercfg /hibernate off | Out-Null",), "Hibernation disabled", native=True),
    ),
    "power_throttle_off": _plan(
        "power",
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Control\Power\PowerThrottling",
            (dword("PowerThrottlingOff", 1),),
            "Power throttling disabled",
        ),
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Control\Session Manager\Power",
            (dword("EcoQosPolicyDisabled", 1),),
            "EcoQoS disabled",
        ),
    ),
    "background_polling": _plan(
        "power",
        PowerSetting("sub_processor", "IDLEDISABLE", 1, "Processor idle states disabled"),
        danger="Disabling processor idle states: constant heat and power draw",
    ),
    # Network
    "dns": _plan("network", SetDns()),
    "nagle": _plan("network", _NAGLE),
    "tcp_optimizer": _plan(
        "network",
        _NAGLE,
        RunScript(
            (
                "netsh int tcp set heuristics disabled | Out-Null",
                'if ($LASTEXITCODE -ne 0) { throw "netsh rejected heuristics" }',
                "netsh int tcp set global autotuninglevel=normal | Out-Null",
            ),
            "TCP global settings tuned",
            native=True,
        ),
    ),
    "network_throttling": _plan(
        "network",
        SetRegistry(
            _SYSTEM_PROFILE,
            (dword("NetworkThrottlingIndex", 0xFFFFFFFF),),
            "Network throttling disabled",
        ),
    ),
    "qos_gaming": _plan(
        "network",
        SetRegistry(
            r"HKLM:\SOFTWARE\Policies\Microsoft\Windows\Psched",
            (dword("NonBestEffortLimit", 0),),
            "QoS bandwidth reservation removed",
        ),
    ),
    "ipv4_prefer": _plan(
        "network",
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Services\Tcpip6\Parameters",
            (dword("DisabledComponents", 32),),
            "IPv4 preferred over IPv6",
        ),
    ),
    "teredo_disable": _plan(
        "network",
        RunScript(
            ("netsh interface teredo set state disabled | Out-Null",),
            "Teredo disabled",
            native=True,
        ),
    ),
    "rss_enable": _plan(
        "network",
        RunScript(
            (f"{_ACTIVE_ADAPTERS} | ForEach-Object {{ Enable-NetAdapterRss -Name $_.Name -EA Stop }}",),
            "Receive side scaling enabled",
        ),
    ),
    "rsc_disable": _plan(
        "network",
        RunScript(
            (f"{_ACTIVE_ADAPTERS} | ForEach-Object {{ Disable-NetAdapterRsc -Name $_.Name -EA Stop }}",),
            "Receive segment coalescing disabled",
        ),
    ),
    "adapter_power": _plan(
        "network",
        RunScript(
            (
                f"{_ACTIVE_ADAPTERS} | ForEach-Object {{",
                "    Set-NetAdapterPowerManagement -Name $_.Name -WakeOnMagicPacket Disabled "
                "-WakeOnPattern Disabled -EA SilentlyContinue",
                "}",
            ),
            "Network adapter power saving disabled",
        ),
    ),
    "network_binding_strip": _plan(
        "network",
        RunScript(
            (
                '$bindings = @("ms_lltdio", "ms_rspndr", "ms_lldp", "ms_implat", "ms_server")',
                f"{_ACTIVE_ADAPTERS} | ForEach-Object {{",
                "    foreach ($binding in $bindings) {",
                "        Disable-NetAdapterBinding -Name $_.Name -ComponentID $binding -EA SilentlyContinue",
                "    }",
                "}",
            ),
            "Non-essential network bindings removed",
        ),
        danger="Removing network discovery and file sharing bindings",
    ),
    # Privacy
    "privacy_tier1": _plan(
        "privacy",
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\CurrentVersion\AdvertisingInfo",
            (dword("Enabled", 0),),
            "Advertising ID disabled",
        ),
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\CurrentVersion\Privacy",
            (dword("TailoredExperiencesWithDiagnosticDataEnabled", 0),),
            "Tailored experiences disabled",
        ),
    ),
    "privacy_tier2": _plan(
        "privacy",
        SetRegistry(
            r"HKLM:\SOFTWARE\Policies\Microsoft\Windows\DataCollection",
            (dword("AllowTelemetry", 0),),
            "Telemetry minimized",
        ),
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\CurrentVersion\Explorer\Advanced",
            (dword("Start_TrackProgs", 0),),
            "Program launch tracking disabled",
        ),
    ),
    "privacy_tier3": _plan(
        "privacy",
        ConfigureService(
            ("XblAuthManager", "XblGameSave", "XboxGipSvc", "XboxNetApiSvc"),
            "Xbox services disabled (breaks Game Pass)",
        ),
    ),
    "background_apps": _plan(
        "privacy",
        SetRegistry(
            r"HKCU:\Software\Microsoft\Windows\CurrentVersion\BackgroundAccessApplications",
            (dword("GlobalUserDisabled", 1),),
            "Background apps disabled",
        ),
    ),
    "copilot_disable": _plan(
        "privacy",
        SetRegistry(
            r"HKCU:\Software\Policies\Microsoft\Windows\WindowsCopilot",
            (dword("TurnOffWindowsCopilot", 1),),
            "Copilot disabled",
        ),
    ),
    "bloatware": _plan(
        "privacy",
        RemoveAppx(
            (
                "Microsoft.BingNews",
                "Microsoft.GetHelp",
                "Microsoft.Getstarted",
                "Microsoft.MicrosoftSolitaireCollection",
                "Microsoft.People",
                "Microsoft.PowerAutomateDesktop",
                "Microsoft.Todos",
                "Microsoft.WindowsAlarms",
                "Microsoft.WindowsFeedbackHub",
                "Microsoft.WindowsMaps",
                "Microsoft.WindowsSoundRecorder",
                "Microsoft.YourPhone",
                "Microsoft.ZuneMusic",
                "Microsoft.ZuneVideo",
                "Clipchamp.Clipchamp",
                "Microsoft.549981C3F5F10",
            ),
            "Preinstalled apps removed",
        ),
    ),
    "edge_debloat": _plan(
        "privacy",
        SetRegistry(
            _EDGE_POLICIES,
            (
                dword("HideFirstRunExperience", 1),
                dword("EdgeShoppingAssistantEnabled", 0),
                dword("WebWidgetAllowed", 0),
            ),
            "Edge debloated",
        ),
    ),
    "razer_block": _plan(
        "privacy",
        ConfigureService(("Razer*",), "Razer services blocked", wildcard=True),
    ),
    "wpbt_disable": _plan(
        "privacy",
        SetRegistry(
            r"HKLM:\SYSTEM\CurrentControlSet\Control\Session Manager",
            (dword("DisableWpbtExecution", 1),),
            "WPBT disabled",
        ),
    ),
    "services_trim": _plan(
        "privacy",
        ConfigureService(
            ("DiagTrack", "dmwappushservice", "lfsvc", "RetailDemo", "Fax", "SharedAccess"),
            "Unused services set to manual",
            startup="Manual",
        ),
    ),
    "disk_cleanup": _plan(
        "privacy",
        RunScript(
            ('Start-Process "cleanmgr.exe" -ArgumentList "/sagerun:100" -Wait -WindowStyle Hidden',),
            "Disk cleanup complete",
        ),
    ),
    "delivery_opt": _plan(
        "privacy",
        SetRegistry(
            r"HKLM:\SOFTWARE\Microsoft\Windows\CurrentVersion\DeliveryOptimization\Config",
            (dword("DODownloadMode", 0),),
            "Delivery Optimization peer downloads disabled",
        ),
    ),
    "wer_disable": _plan(
        "privacy",
        SetRegistry(
            r"HKLM:\SOFTWARE\Microsoft\Windows\Windows Error Reporting",
            (dword("Disabled", 1),),
            "Windows Error Reporting disabled",
        ),
        ConfigureService(("WerSvc",), "Error reporting service disabled"),
    ),
    "wifi_sense": _plan(
        "privacy",
        SetRegistry(
            r"HKLM:\SOFTWARE\Microsoft\WcmSvc\wifinetworkmanager\config",
            (dword("AutoConnectAllowedOEM", 0),),
            "Wi-Fi Sense disabled",
        ),
    ),
    "spotlight_disable": _plan(
        "privacy",
        SetRegistry(
            _CONTENT_DELIVERY,
            (
                dword("RotatingLockScreenEnabled", 0),
                dword("RotatingLockScreenOverlayEnabled", 0),
            ),
            "Windows Spotlight disabled",
        ),
    ),
    "feedback_disable": _plan(
        "privacy",
        SetRegistry(
            r"HKCU:\Software\Microsoft\Siuf\Rules",
            (dword("NumberOfSIUFInPeriod", 0),),
            "Feedback prompts disabled",
        ),
    ),
    "clipboard_sync": _plan(
        "privacy",
        SetRegistry(
            r"HKCU:\Software\Microsoft\Clipboard",
            (dword("EnableClipboardHistory", 0),),
            "Clipboard history sync disabled",
        ),
    ),
    # Audio
    "audio_enhancements": _plan("audio", _AUDIO_DUCKING),
    "audio_communications": _plan("audio", _AUDIO_DUCKING),
    "audio_exclusive": _plan("audio", _SYSTEM_SOUND_SCHEME),
    "audio_system_sounds": _plan(
        "audio",
        _SYSTEM_SOUND_SCHEME,
        RunScript(
            (
                r'Get-ChildItem "HKCU:\AppEvents\Schemes\Apps" -Recurse '
                '| Where-Object {$_.PSChildName -eq ".Current"} '
                '| ForEach-Object { Set-ItemProperty -Path $_.PSPath -Name "(Default)" -Value "" -EA SilentlyContinue }',
            ),
            "Individual sound events muted",
        ),
    ),
}


def action_plan_for(key: str) -> ActionPlan | None:
    return ACTION_PLANS.get(key)


def unmapped_keys(keys: tuple[str, ...] | None = None) -> tuple[str, ...]:
    """Catalog keys (or ``keys``) that neither have an action plan nor special handling."""
    from loadout.catalog.optimizations import OPTIMIZATION_KEYS

    candidates = OPTIMIZATION_KEYS if keys is None else keys
    return tuple(key for key in candidates if key not in ACTION_PLANS and key not in SPECIAL_KEYS)
