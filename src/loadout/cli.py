"""Command line for compiling, sharing, and auditing loadouts.

Usage:
    loadout compile selection.json --catalog catalog.json --out setup.ps1
    loadout verify selection.json
    loadout encode selection.json
    loadout decode '1.eNo...'
    loadout audit
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path

from loadout.catalog.software import read_software_catalog
from loadout.compiler import CompilerConfig, compile_selection, compile_verification_script
from loadout.errors import LoadoutError
from loadout.models import DNS_PROVIDERS
from loadout.observability import StructuredLogger
from loadout.policy import DEFAULT_POLICY, Policy
from loadout.registry import REGISTRY, audit_registry, has_errors
from loadout.selection_io import read_selection
from loadout.share import ShareConfig, decode, encode_with_meta


def _policy(args: argparse.Namespace) -> Policy:
    if getattr(args, "acknowledge_ludicrous", False):
        return DEFAULT_POLICY.acknowledge_ludicrous()
    return DEFAULT_POLICY


def _write_output(text: str, out: Path | None) -> None:
    if out is None:
        sys.stdout.write(text)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    print(f"Wrote {out}")


def cmd_compile(args: argparse.Namespace, logger: StructuredLogger) -> int:
    document = read_selection(args.selection)
    catalog = read_software_catalog(args.catalog)
    compiled = compile_selection(
        document.selection,
        catalog,
        args.dns or document.dns_provider,
        policy=_policy(args),
        config=CompilerConfig(share_url=args.share_url),
        logger=logger,
    )
    _write_output(compiled.text, args.out)
    plan = compiled.plan
    for key in plan.blocked:
        print(f"warning: ludicrous optimization '{key}' skipped (not acknowledged)", file=sys.stderr)
    for key in plan.missing_packages:
        print(f"warning: package '{key}' is not in the catalog", file=sys.stderr)
    print(f"sha256: {compiled.sha256}", file=sys.stderr)
    return 0


def cmd_verify(args: argparse.Namespace, logger: StructuredLogger) -> int:
    document = read_selection(args.selection)
    text = compile_verification_script(document.selection, policy=_policy(args), logger=logger)
    _write_output(text, args.out)
    return 0


def cmd_encode(args: argparse.Namespace, logger: StructuredLogger) -> int:
    document = read_selection(args.selection)
    config = ShareConfig(base_url=args.base_url) if args.base_url else ShareConfig()
    result = encode_with_meta(
        document.to_build(), policy=_policy(args), config=config, logger=logger
    )
    print(result.url if args.url else result.token)
    if result.blocked_count:
        print(
            f"warning: {result.blocked_count} ludicrous optimization(s) not shared",
            file=sys.stderr,
        )
    for key in result.dropped_keys:
        print(f"warning: optimization '{key}' has no stable id and was dropped", file=sys.stderr)
    if result.url_too_long:
        print(f"warning: URL is {result.url_length} characters long", file=sys.stderr)
    return 0


def cmd_decode(args: argparse.Namespace, logger: StructuredLogger) -> int:
    result = decode(args.token, policy=_policy(args), logger=logger)
    if not result.success or result.build is None:
        print(f"error: {result.error}", file=sys.stderr)
        return 1
    print(json.dumps(result.build.to_dict(), indent=2, sort_keys=True))
    for warning in result.build.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


def cmd_audit(args: argparse.Namespace, logger: StructuredLogger) -> int:
    issues = audit_registry(REGISTRY)
    for issue in issues:
        if args.verbose or issue.level != "info":
            print(issue)
    failed = has_errors(issues)
    logger.log(
        operation="audit",
        component="registry",
        message="Registry audit failed." if failed else "Registry audit passed.",
        level="error" if failed else "info",
        extra={"issues": len(issues)},
    )
    if not failed:
        print("Registry audit passed.")
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="loadout", description="Loadout selection compiler")
    parser.add_argument("--log-file", type=Path, help="Write structured log records as JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    compile_p = sub.add_parser("compile", help="Compile a selection into a setup script")
    compile_p.add_argument("selection", type=Path, help="Selection JSON file")
    compile_p.add_argument("--catalog", type=Path, required=True, help="Software catalog JSON")
    compile_p.add_argument("--dns", choices=DNS_PROVIDERS, help="Override the DNS provider")
    compile_p.add_argument("--share-url", help="Share URL to record in the script header")
    compile_p.add_argument("--out", type=Path, help="Output file (default: stdout)")
    compile_p.add_argument(
        "--acknowledge-ludicrous",
        action="store_true",
        help="Allow ludicrous-tier optimizations",
    )
    compile_p.set_defaults(handler=cmd_compile)

    verify_p = sub.add_parser("verify", help="Emit a read-only verification script")
    verify_p.add_argument("selection", type=Path, help="Selection JSON file")
    verify_p.add_argument("--out", type=Path, help="Output file (default: stdout)")
    verify_p.add_argument("--acknowledge-ludicrous", action="store_true")
    verify_p.set_defaults(handler=cmd_verify)

    encode_p = sub.add_parser("encode", help="Encode a selection into a share token")
    encode_p.add_argument("selection", type=Path, help="Selection JSON file")
    encode_p.add_argument("--base-url", help="Base URL for the share link")
    encode_p.add_argument("--url", action="store_true", help="Print the full URL")
    encode_p.add_argument("--acknowledge-ludicrous", action="store_true")
    encode_p.set_defaults(handler=cmd_encode)

    decode_p = sub.add_parser("decode", help="Decode a share token or URL")
    decode_p.add_argument("token", help="Token, fragment, or full share URL")
    decode_p.add_argument("--acknowledge-ludicrous", action="store_true")
    decode_p.set_defaults(handler=cmd_decode)

    audit_p = sub.add_parser("audit", help="Audit the stable-id registry")
    audit_p.add_argument("--verbose", action="store_true", help="Include informational lines")
    audit_p.set_defaults(handler=cmd_audit)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = StructuredLogger()
    try:
        status = args.handler(args, logger)
    except LoadoutError as exc:
        print(f"error[{exc.code}]: {exc}", file=sys.stderr)
        status = 2
    if args.log_file is not None:
        logger.to_json_lines(args.log_file)
    return status
