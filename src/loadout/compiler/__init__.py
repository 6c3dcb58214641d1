"""Selection compiler: action table, planning, and script emitters."""

from __future__ import annotations

from .actions import ACTION_PLANS, SECTION_ORDER, ActionPlan, unmapped_keys
from .emit_powershell import (
    CompiledScript,
    CompilerConfig,
    compile_script,
    compile_selection,
    ps_quote,
)
from .emit_verify import compile_verification_script
from .plan import PlannedAction, ResolvedPackage, ScriptPlan, SectionPlan, plan_selection

__all__ = [
    "ACTION_PLANS",
    "SECTION_ORDER",
    "ActionPlan",
    "CompiledScript",
    "CompilerConfig",
    "PlannedAction",
    "ResolvedPackage",
    "ScriptPlan",
    "SectionPlan",
    "compile_script",
    "compile_selection",
    "compile_verification_script",
    "plan_selection",
    "ps_quote",
    "unmapped_keys",
]
