"""Loadout: compile tweak selections into setup scripts and share them as tokens."""

__version__ = "0.1.0"

from .catalog import SoftwarePackage, classify_risk, requires_restore_point  # noqa: E402
from .compiler import (  # noqa: E402
    CompiledScript,
    CompilerConfig,
    compile_script,
    compile_selection,
    compile_verification_script,
    plan_selection,
)
from .errors import (  # noqa: E402
    CatalogError,
    ErrorCode,
    LoadoutError,
    RegistryError,
    ShareDecodeError,
    ValidationError,
)
from .models import (  # noqa: E402
    BuildToEncode,
    DecodedBuild,
    DecodeResult,
    EncodeResult,
    HardwareProfile,
    SelectionState,
)
from .observability import StructuredLogger  # noqa: E402
from .policy import DEFAULT_POLICY, Policy  # noqa: E402
from .share import (  # noqa: E402
    ShareConfig,
    decode,
    decode_or_raise,
    encode,
    encode_with_meta,
    rehydrate_selection,
)

__all__ = [
    "DEFAULT_POLICY",
    "BuildToEncode",
    "CatalogError",
    "CompiledScript",
    "CompilerConfig",
    "DecodeResult",
    "DecodedBuild",
    "EncodeResult",
    "ErrorCode",
    "HardwareProfile",
    "LoadoutError",
    "Policy",
    "RegistryError",
    "SelectionState",
    "ShareConfig",
    "ShareDecodeError",
    "SoftwarePackage",
    "StructuredLogger",
    "ValidationError",
    "__version__",
    "classify_risk",
    "compile_script",
    "compile_selection",
    "compile_verification_script",
    "decode",
    "decode_or_raise",
    "encode",
    "encode_with_meta",
    "plan_selection",
    "rehydrate_selection",
    "requires_restore_point",
]
