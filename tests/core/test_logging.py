from __future__ import annotations

import json
import logging
from pathlib import Path

from biostat_quiz.core import logging as core_logging


def _lines(path: Path) -> list[dict]:
    return [
        json.loads(line)
        for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]


def test_configure_logger_writes_json(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "biostat_quiz.test", log_dir=tmp_path / "logs", level="INFO"
    )
    assert log_path == tmp_path / "logs" / "test.log"

    logger.debug("hidden")
    logger.info("hello", extra={"count": 3, "path": Path("/tmp/x")})

    class _Helper:
        def __repr__(self):  # noqa: D401
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={"value": {"items": [1, (2, 3)]}, "obj": _Helper()},
        )
    for handler in logger.handlers:
        handler.flush()

    records = _lines(log_path)
    assert [r["message"] for r in records] == ["hello", "with error"]
    first = records[0]
    assert first["level"] == "INFO"
    assert first["logger"] == "biostat_quiz.test"
    assert first["extra"] == {"count": 3, "path": "/tmp/x"}
    last = records[-1]
    assert "ValueError: boom" in last["exception"]
    assert last["extra"]["value"] == {"items": [1, [2, 3]]}
    assert last["extra"]["obj"] == "helper"

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_configure_logger_reuses_handlers(tmp_path):
    name = "biostat_quiz.reuse"
    logger, _ = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", verbose=True
    )
    assert len(logger.handlers) == 2

    logger, path = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", verbose=True
    )
    assert len(logger.handlers) == 2

    logger, path = core_logging.configure_logger(name, log_dir=tmp_path / "b")
    assert len(logger.handlers) == 1
    (handler,) = logger.handlers
    assert Path(handler.baseFilename) == (tmp_path / "b" / "reuse.log").resolve()
    assert handler.level == logging.INFO

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_unknown_level_falls_back_to_info(tmp_path):
    logger, _ = core_logging.configure_logger(
        "biostat_quiz.level", log_dir=tmp_path, level="chatty"
    )
    (handler,) = logger.handlers
    assert handler.level == logging.INFO
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
