import json
from pathlib import Path

from loadout.observability import StructuredLogger


def test_logger_filters_by_operation_and_level() -> None:
    logger = StructuredLogger()
    logger.log(operation="encode", component="share", message="dropped", key="x", level="warning")
    logger.log(operation="decode", component="share", message="ok")
    assert [record["key"] for record in logger.records_for_operation("encode")] == ["x"]
    assert len(logger.warnings()) == 1
    assert "extra" not in logger.records[1]


def test_logger_writes_json_lines(tmp_path: Path) -> None:
    logger = StructuredLogger()
    logger.log(operation="audit", component="registry", message="done", extra={"issues": 3})
    path = logger.to_json_lines(tmp_path / "logs" / "run.jsonl")
    record = json.loads(path.read_text(encoding="utf-8").strip())
    assert record == {
        "component": "registry",
        "extra": {"issues": 3},
        "key": None,
        "level": "info",
        "message": "done",
        "operation": "audit",
    }
