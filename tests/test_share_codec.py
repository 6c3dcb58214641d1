import base64
import zlib

import cbor2
import pytest

from loadout.errors import ErrorCode, ShareDecodeError
from loadout.models import BuildToEncode, DecodedBuild
from loadout.policy import DEFAULT_POLICY
from loadout.share import (
    ShareConfig,
    decode,
    decode_or_raise,
    encode,
    encode_with_meta,
    rehydrate_selection,
)


def _token(payload: object, *, prefix: str = "1") -> str:
    raw = zlib.compress(cbor2.dumps(payload, canonical=True), 9)
    return f"{prefix}." + base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _decoded(token: str, **kwargs) -> DecodedBuild:
    result = decode(token, **kwargs)
    assert result.success, result.error
    assert result.build is not None
    return result.build


def test_roundtrip_preserves_registered_fields() -> None:
    build = BuildToEncode(
        cpu="intel",
        gpu="amd",
        dns_provider="quad9",
        peripherals=("razer", "logitech"),
        monitor_software=("lg",),
        optimizations=("pagefile", "hpet", "bloatware"),
        packages=("steam", "discord"),
        preset="pro_gamer",
    )
    decoded = _decoded(encode(build))

    assert decoded.cpu == "intel"
    assert decoded.gpu == "amd"
    assert decoded.dns_provider == "quad9"
    assert decoded.peripherals == ("razer", "logitech")
    assert decoded.monitor_software == ("lg",)
    assert set(decoded.optimizations) == {"pagefile", "hpet", "bloatware"}
    assert decoded.packages == ("steam", "discord")
    assert decoded.preset == "pro_gamer"
    assert decoded.skipped_count == 0
    assert decoded.warnings == ()


def test_cpu_id_one_decodes_to_amd_x3d() -> None:
    assert _decoded(_token({"v": 1, "c": 1})).cpu == "amd_x3d"
    decoded = _decoded(encode(BuildToEncode(cpu="amd_x3d")))
    assert decoded.cpu == "amd_x3d"
    assert decoded.warnings == ()


def test_token_format_is_versioned_base64url() -> None:
    token = encode(BuildToEncode(cpu="amd", optimizations=("dns",)))
    version, _, body = token.partition(".")
    assert version == "1"
    assert "=" not in body
    assert set(body) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_")


def test_encode_is_independent_of_optimization_order() -> None:
    first = encode(BuildToEncode(optimizations=("dns", "pagefile", "hpet")))
    second = encode(BuildToEncode(optimizations=("hpet", "dns", "pagefile")))
    assert first == second


def test_omitted_fields_are_omitted_from_payload() -> None:
    decoded = _decoded(encode(BuildToEncode()))
    assert decoded == DecodedBuild()


def test_unknown_optimization_id_is_skipped_with_grouped_warning() -> None:
    decoded = _decoded(_token({"v": 1, "o": [1, 999, 998]}))
    assert decoded.optimizations == ("pagefile",)
    assert decoded.skipped_count == 2
    assert decoded.warnings == ("2 optimization(s) no longer available",)


def test_unknown_scalar_ids_produce_per_field_warnings() -> None:
    decoded = _decoded(_token({"v": 1, "c": 9, "g": "1", "d": 42, "r": 7}))
    assert decoded.cpu is None
    assert decoded.gpu is None
    assert decoded.warnings == (
        "Unknown CPU setting (ID: 9)",
        "Unknown GPU setting (ID: 1)",
        "Unknown DNS setting (ID: 42)",
        "Unknown preset (ID: 7)",
    )
    assert decoded.skipped_count == 4


def test_unknown_brand_ids_and_unreadable_packages() -> None:
    decoded = _decoded(
        _token({"v": 1, "p": [1, 50], "m": [9], "s": ["steam", 3, "Bad Key!"]})
    )
    assert decoded.peripherals == ("logitech",)
    assert decoded.monitor_software == ()
    assert decoded.packages == ("steam",)
    assert "1 peripheral(s) no longer available" in decoded.warnings
    assert "1 monitor software no longer available" in decoded.warnings
    assert "2 package(s) could not be read" in decoded.warnings
    assert decoded.skipped_count == 4


def test_package_keys_with_trailing_newline_are_unreadable() -> None:
    decoded = _decoded(_token({"v": 1, "s": ["steam\n", "discord"]}))
    assert decoded.packages == ("discord",)
    assert "1 package(s) could not be read" in decoded.warnings
    assert decoded.skipped_count == 1


def test_embedded_float_version_is_structural() -> None:
    result = decode(_token({"v": 1.0, "c": 1}))
    assert not result.success
    assert result.build is None
    assert "does not match" in (result.error or "")


def test_embedded_version_two_is_rejected() -> None:
    result = decode(_token({"v": 2, "c": 1}))
    assert not result.success
    assert result.error == "URL version 2 is not supported. Please update."


def test_prefix_version_two_is_rejected() -> None:
    result = decode(_token({"v": 2}, prefix="2"))
    assert not result.success
    assert "version 2" in (result.error or "")


def test_prefix_and_payload_version_mismatch_is_structural() -> None:
    result = decode(_token({"c": 1}))
    assert not result.success
    assert "does not match" in (result.error or "")


@pytest.mark.parametrize(
    "token",
    [
        "",
        "no-separator",
        "abc.def",
        "0.abc",
        "1.",
        "1.***",
        "1." + base64.urlsafe_b64encode(b"not zlib").decode("ascii"),
    ],
)
def test_malformed_tokens_fail_without_partial_data(token: str) -> None:
    result = decode(token)
    assert not result.success
    assert result.build is None
    assert result.error


def test_non_map_payload_is_structural_error() -> None:
    result = decode(_token([1, 2, 3]))
    assert not result.success
    assert "not a map" in (result.error or "")


def test_truncated_payload_is_structural_error() -> None:
    token = _token({"v": 1, "c": 1})
    result = decode(token[:-4])
    assert not result.success


def test_oversized_payload_is_rejected() -> None:
    token = _token({"v": 1, "s": ["a" * 200] * 400})
    result = decode(token, config=ShareConfig(max_payload_bytes=1024))
    assert not result.success
    assert "size limit" in (result.error or "")


def test_decode_or_raise_raises_share_decode_error() -> None:
    with pytest.raises(ShareDecodeError) as excinfo:
        decode_or_raise("9.abc")
    assert excinfo.value.code == ErrorCode.SHARE_DECODE.value
    assert "version 9" in str(excinfo.value)


def test_fragment_and_full_url_forms_are_accepted() -> None:
    result = encode_with_meta(BuildToEncode(cpu="intel"))
    assert _decoded(result.token).cpu == "intel"
    assert _decoded("#b=" + result.token).cpu == "intel"
    assert _decoded(result.url).cpu == "intel"
    assert result.url == f"https://loadout.local/#b={result.token}"


def test_arrays_are_capped() -> None:
    decoded = _decoded(_token({"v": 1, "o": [1] * 100 + [2]}))
    assert decoded.optimizations == ("pagefile",)
    assert decoded.skipped_count == 0


def test_encode_blocks_ludicrous_without_acknowledgement() -> None:
    build = BuildToEncode(optimizations=("dns", "dep_off"))
    result = encode_with_meta(build)
    assert result.blocked_count == 1
    assert _decoded(result.token).optimizations == ("dns",)

    acknowledged = DEFAULT_POLICY.acknowledge_ludicrous()
    token = encode(build, policy=acknowledged)
    assert set(_decoded(token, policy=acknowledged).optimizations) == {"dns", "dep_off"}


def test_decode_removes_ludicrous_without_acknowledgement(logger) -> None:
    token = encode(
        BuildToEncode(optimizations=("dns", "dep_off", "spectre_meltdown_off")),
        policy=DEFAULT_POLICY.acknowledge_ludicrous(),
    )
    decoded = _decoded(token, logger=logger)
    assert decoded.optimizations == ("dns",)
    assert decoded.skipped_count == 2
    assert decoded.warnings == ("2 dangerous optimization(s) removed for security",)
    assert logger.warnings()[0]["message"] == decoded.warnings[0]


def test_unmappable_optimization_keys_are_dropped_and_reported(logger) -> None:
    result = encode_with_meta(BuildToEncode(optimizations=("dns", "future_tweak")), logger=logger)
    assert result.dropped_keys == ("future_tweak",)
    assert _decoded(result.token).optimizations == ("dns",)
    assert [record["key"] for record in logger.records_for_operation("encode")] == ["future_tweak"]


def test_long_urls_are_flagged() -> None:
    packages = tuple(f"package-{index}" for index in range(300))
    result = encode_with_meta(
        BuildToEncode(packages=packages), config=ShareConfig(url_length_warning=100)
    )
    assert result.url_too_long
    assert result.url_length == len(result.url)


def test_structural_failure_is_logged(logger) -> None:
    decode("garbage", logger=logger)
    records = logger.records_for_operation("decode")
    assert records[0]["level"] == "warning"
    assert "missing version prefix" in records[0]["message"]


def test_rehydrate_selection_marks_missing_packages(catalog) -> None:
    decoded = DecodedBuild(
        peripherals=("logitech",),
        optimizations=("dns", "nagle"),
        packages=("steam", "ghost"),
    )
    selection = rehydrate_selection(decoded, catalog)
    assert selection.hardware.cpu == "amd_x3d"
    assert selection.hardware.gpu == "nvidia"
    assert selection.hardware.peripherals == ("logitech",)
    assert selection.optimizations == frozenset({"dns", "nagle"})
    assert selection.packages == frozenset({"steam", "ghost"})
    assert selection.missing_packages == frozenset({"ghost"})
