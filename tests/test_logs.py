from __future__ import annotations

import io
import json
import logging

from mcqgen.logs import configure_logging


def test_configure_logging_emits_json_lines() -> None:
    buf = io.StringIO()
    logger = configure_logging("INFO", stream=buf)
    configure_logging("INFO", stream=buf)

    managed = [h for h in logger.handlers if getattr(h, "_mcqgen_managed", False)]
    assert len(managed) == 1

    logging.getLogger("mcqgen.extractor").info("hello %s", "there", extra={"questions": 3})
    logging.getLogger("mcqgen.extractor").debug("not shown")

    lines = [json.loads(ln) for ln in buf.getvalue().splitlines()]
    assert len(lines) == 1
    assert lines[0]["message"] == "hello there"
    assert lines[0]["logger"] == "mcqgen.extractor"
    assert lines[0]["level"] == "INFO"
    assert lines[0]["extra"] == {"questions": 3}
