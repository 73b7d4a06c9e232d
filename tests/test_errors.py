"""Error catalog formatting."""
import pytest

from errmap.internals.errors import (
    ERR,
    REGISTRY,
    ConfigError,
    emit,
    format_message,
    make_error,
)
from errmap.internals.report import Reporter


def test_catalog_text_may_use_a_code_placeholder():
    assert format_message("EM0001", code="9") == "unknown error code 9"


def test_emit_with_code_keyword_reports_the_catalog_code():
    reporter = Reporter()
    emit(reporter, ERR.EM0001, None, code="42")
    [diag] = reporter.items
    assert diag.code == "EM0001"
    assert diag.message == "unknown error code 42"
    assert reporter.exit_code() == 2


def test_make_error_picks_exception_kind():
    exc = make_error("EC0001")
    assert isinstance(exc, ConfigError)
    assert exc.code == "EC0001"


def test_missing_text_key_names_the_code():
    with pytest.raises(KeyError, match="EM0001"):
        format_message("EM0001")


def test_every_code_is_registered_once():
    assert all(code == msg.code for code, msg in REGISTRY.items())
