"""Share surface: token codec and human-facing summaries."""

from __future__ import annotations

from .codec import (
    CURRENT_VERSION,
    ShareConfig,
    decode,
    decode_or_raise,
    encode,
    encode_with_meta,
    rehydrate_selection,
)
from .summary import OneLiner, encode_compact, one_liner, text_summary

__all__ = [
    "CURRENT_VERSION",
    "OneLiner",
    "ShareConfig",
    "decode",
    "decode_or_raise",
    "encode",
    "encode_compact",
    "encode_with_meta",
    "one_liner",
    "rehydrate_selection",
    "text_summary",
]
