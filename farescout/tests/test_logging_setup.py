import io
import logging

import pytest

from farescout.logging_setup import SanitizingFilter, configure_logging


KEY = "a1b2c3d4e5f6a7b8c9d0e1f2"
URL_WITH_KEY = f"https://api.flightapi.io/onewaytrip/{KEY}/bom/jfk"


@pytest.fixture
def captured():
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SanitizingFilter(secrets=("plain-secret",)))
    logger = logging.getLogger("farescout.test_logging")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger, stream
    logger.removeHandler(handler)
    logger.propagate = True


def test_arguments_are_sanitized(captured):
    logger, stream = captured
    logger.info("Requesting %s with %s", URL_WITH_KEY, "plain-secret")
    out = stream.getvalue()
    assert KEY not in out
    assert "plain-secret" not in out
    assert "/bom/jfk" in out


def test_tracebacks_are_sanitized(captured):
    logger, stream = captured
    try:
        raise RuntimeError(f"request to {URL_WITH_KEY} failed")
    except RuntimeError:
        logger.exception("search failed")
    out = stream.getvalue()
    assert "search failed" in out
    assert "Traceback" in out
    assert KEY not in out


def test_configure_logging_writes_sanitized_file(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    log_file = tmp_path / "farescout.log"
    try:
        configure_logging("DEBUG", str(log_file), secrets=("plain-secret",))
        logging.getLogger("farescout.test").warning("key plain-secret at %s", URL_WITH_KEY)
        for handler in root.handlers:
            handler.flush()
        text = log_file.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)

    assert "WARNING [farescout.test]" in text
    assert "plain-secret" not in text
    assert KEY not in text
