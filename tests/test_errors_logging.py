"""Tests for error handling and logging modules."""

import json
import logging
import pytest
from unittest.mock import Mock

from reelcut.errors import (
    ConfigurationError,
    CutWindowError,
    DurationProbeError,
    EncodingError,
    ErrorCategory,
    ProbeError,
    PublishError,
    ReelcutError,
    RetryConfig,
    TransportError,
    ValidationError,
    attempt,
    attempt_with_config,
    backoff_delay,
    format_error_for_display,
    with_context,
)
from reelcut.logging import (
    LogConfig,
    LogContext,
    LogLevel,
    ReelcutLogger,
    StructuredFormatter,
    configure_logging,
    enable_file_logging,
    get_logger,
    log_stage_failed,
    set_verbosity,
)


def _record(msg="Test message", level=logging.INFO):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestReelcutError:
    """Tests for ReelcutError base class."""

    def test_basic_error(self):
        """Test basic error creation."""
        error = ReelcutError("Test error")

        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.context == {}
        assert error.recoverable is False
        assert error.category == ErrorCategory.INTERNAL

    def test_error_with_context(self):
        """Test error with context."""
        error = ReelcutError("Test error", context={"video": "abc"})

        assert "context: {'video': 'abc'}" in str(error)


class TestSpecificErrors:
    """Tests for the categorised error types."""

    def test_transport_error_is_recoverable(self):
        error = TransportError("timeout")
        assert error.category == ErrorCategory.TRANSPORT
        assert error.recoverable is True

    def test_probe_errors(self):
        error = DurationProbeError("no duration")
        assert isinstance(error, ProbeError)
        assert error.category == ErrorCategory.PROBE
        assert error.recoverable is False

    def test_cut_window_error_is_validation(self):
        error = CutWindowError("bad window")
        assert isinstance(error, ValidationError)
        assert error.category == ErrorCategory.VALIDATION

    def test_encoding_and_publish(self):
        assert EncodingError("x").category == ErrorCategory.ENCODING
        assert PublishError("x").category == ErrorCategory.RESOURCE

    def test_configuration_error(self):
        error = ConfigurationError("missing key")
        assert error.category == ErrorCategory.CONFIGURATION
        assert error.recoverable is False


class TestBackoffDelay:
    """Tests for backoff_delay."""

    def test_first_attempt_has_no_delay(self):
        assert backoff_delay(0) == 0.0

    def test_exponential(self):
        assert backoff_delay(1) == 2.0
        assert backoff_delay(2) == 4.0
        assert backoff_delay(3, base=3.0) == 27.0


class TestAttempt:
    """Tests for the retry loop."""

    def test_success_first_try(self):
        """A successful first call makes one attempt and never sleeps."""
        sleep = Mock()
        result = attempt(lambda: "ok", sleep=sleep)

        assert result.succeeded
        assert result.value == "ok"
        assert result.attempts == 1
        assert result.delays == [0.0]
        sleep.assert_not_called()

    def test_fail_fail_succeed(self):
        """Two transport failures then success: three attempts, delays 0, 2, 4."""
        fn = Mock(side_effect=[TransportError("a"), TransportError("b"), "done"])
        sleep = Mock()

        result = attempt(fn, max_attempts=3, backoff_base=2.0, sleep=sleep)

        assert result.succeeded
        assert result.value == "done"
        assert result.attempts == 3
        assert result.delays == [0.0, 2.0, 4.0]
        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]

    def test_exhausted(self):
        """Exhaustion is reported, not raised."""
        fn = Mock(side_effect=TransportError("down"))

        result = attempt(fn, max_attempts=3, sleep=Mock())

        assert not result.succeeded
        assert result.value is None
        assert isinstance(result.error, TransportError)
        assert result.attempts == 3
        assert fn.call_count == 3

    def test_non_retryable_propagates(self):
        """Errors outside retry_on escape immediately."""
        fn = Mock(side_effect=ValueError("bug"))

        with pytest.raises(ValueError):
            attempt(fn, sleep=Mock())

        assert fn.call_count == 1

    def test_with_config(self):
        config = RetryConfig(max_attempts=2, backoff_base=3.0)
        fn = Mock(side_effect=[TransportError("a"), 7])
        sleep = Mock()

        result = attempt_with_config(fn, config, sleep=sleep)

        assert result.value == 7
        assert result.delays == [0.0, 3.0]
        sleep.assert_called_once_with(3.0)


class TestFormatErrorForDisplay:
    """Tests for format_error_for_display."""

    def test_format_reelcut_error(self):
        error = CutWindowError("Cut ends before it begins", context={"cut": "Intro"})

        assert format_error_for_display(error) == "[validation] Cut ends before it begins (cut=Intro)"

    def test_format_without_context(self):
        assert format_error_for_display(EncodingError("boom")) == "[encoding] boom"

    def test_format_generic_error(self):
        formatted = format_error_for_display(ValueError("Invalid value"))

        assert "ValueError" in formatted
        assert "Invalid value" in formatted

    def test_with_context_keeps_existing_keys(self):
        error = ProbeError("x", context={"path": "a.mp4"})
        with_context(error, video="abc", path="other")

        assert error.context == {"video": "abc", "path": "a.mp4"}


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_text_format(self):
        formatter = StructuredFormatter(
            json_format=False,
            include_timestamp=False,
            include_context=False,
            color=False,
        )

        formatted = formatter.format(_record())

        assert "INFO" in formatted
        assert "Test message" in formatted

    def test_json_format_with_context(self):
        formatter = StructuredFormatter(json_format=True, include_timestamp=False)
        record = _record()
        record.video = "abc123"
        record.segment = 2

        parsed = json.loads(formatter.format(record))

        assert parsed["level"] == "info"
        assert parsed["message"] == "Test message"
        assert parsed["context"] == {"video": "abc123", "segment": 2}

    def test_context_in_text(self):
        formatter = StructuredFormatter(include_timestamp=False, color=False)
        record = _record()
        record.stage = "download"

        assert "stage=download" in formatter.format(record)


class TestLoggers:
    """Tests for logger configuration helpers."""

    def teardown_method(self):
        configure_logging(LogConfig())

    def test_get_logger(self):
        logger = get_logger("reelcut.test.module")

        assert isinstance(logger, ReelcutLogger)
        assert logger.name == "reelcut.test.module"

    def test_set_verbosity(self):
        set_verbosity(LogLevel.DEBUG)

        assert logging.getLogger("reelcut").level == logging.DEBUG

    def test_quiet_level(self):
        set_verbosity(LogLevel.QUIET)

        assert logging.getLogger("reelcut").level == logging.ERROR

    def test_enable_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "reelcut.log"
        enable_file_logging(log_file)

        get_logger("reelcut.test.file").warning("written to file")
        for handler in logging.getLogger("reelcut").handlers:
            handler.flush()

        assert "written to file" in log_file.read_text(encoding="utf-8")

    def test_with_context_binds_fields(self, caplog):
        logger = get_logger("reelcut.test.context").with_context(video="abc")

        with caplog.at_level(logging.INFO, logger="reelcut"):
            logger.info("hello", extra={"segment": 1})

        record = caplog.records[-1]
        assert record.video == "abc"
        assert record.segment == 1

    def test_log_context_sets_record_attributes(self, caplog):
        logger = get_logger("reelcut.test.logcontext")

        with caplog.at_level(logging.INFO, logger="reelcut"):
            with LogContext(run="r1"):
                logger.info("inside")
            logger.info("outside")

        inside, outside = caplog.records[-2:]
        assert inside.run == "r1"
        assert not hasattr(outside, "run")

    def test_log_stage_failed(self, caplog):
        logger = get_logger("reelcut.test.stage")

        with caplog.at_level(logging.ERROR, logger="reelcut"):
            log_stage_failed(logger, "upload", PublishError("quota"), cut="Intro")

        record = caplog.records[-1]
        assert record.stage == "upload"
        assert record.error_type == "PublishError"
        assert record.cut == "Intro"
        assert "upload" in record.getMessage()
