from __future__ import annotations

from scout_cli.shared.logging import get_logger


def test_logger_info_routes_to_stderr(capfd) -> None:
    logger = get_logger()

    logger.info("structured log to stderr")

    captured = capfd.readouterr()
    assert "structured log to stderr" in captured.err
    assert "structured log to stderr" not in captured.out


def test_debug_only_when_verbose(capfd) -> None:
    get_logger(verbose=False).debug("hidden detail")
    get_logger(verbose=True).debug("shown detail")

    captured = capfd.readouterr()
    assert "hidden detail" not in captured.err
    assert "shown detail" in captured.err


def test_child_logger_tags_messages(capfd) -> None:
    logger = get_logger(verbose=True).child("cache")

    logger.warning("entry skipped [shop]")

    captured = capfd.readouterr()
    assert "[cache] entry skipped [shop]" in captured.err
    assert logger.verbose is True
