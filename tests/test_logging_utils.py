from __future__ import annotations

import logging

import yomi.logging_utils as logging_utils
from yomi.logging_utils import Utf8AccessFormatter, build_uvicorn_log_config, debug_log, set_debug_logging


def test_debug_log_is_silent_until_enabled(monkeypatch, capsys) -> None:
    monkeypatch.setattr(logging_utils, "_DEBUG_LOG", False)
    debug_log("hidden")
    assert capsys.readouterr().err == ""
    set_debug_logging(True)
    debug_log("shown")
    assert capsys.readouterr().err == "[yomi debug] shown\n"


def test_access_formatter_decodes_paths() -> None:
    formatter = Utf8AccessFormatter(fmt="%(request_line)s", use_colors=False)
    record = logging.LogRecord(
        "uvicorn.access",
        logging.INFO,
        __file__,
        1,
        '%s - "%s %s HTTP/%s" %d',
        ("127.0.0.1:5000", "GET", "/api/%E6%9D%B1%E4%BA%AC", "1.1", 200),
        None,
    )
    assert formatter.format(record) == "GET /api/東京 HTTP/1.1"


def test_uvicorn_log_config() -> None:
    config = build_uvicorn_log_config()
    assert config["formatters"]["access"]["()"] == "yomi.logging_utils.Utf8AccessFormatter"
    debug_config = build_uvicorn_log_config(debug=True)
    assert all(logger["level"] == "DEBUG" for logger in debug_config["loggers"].values())
