"""
Property-based tests for Audit Logger module.

Uses Hypothesis to check output formats, level filtering and masking of
credentials in log data.
"""

import json
from io import StringIO

import pytest
from hypothesis import given, settings, assume
from hypothesis import strategies as st

from gtm_traffic.audit_logger import AuditLogger
from gtm_traffic.enums import LogLevel
from gtm_traffic.exceptions import RemoteServiceError


SENSITIVE_PATTERNS = [
    'token', 'secret', 'password', 'auth', 'authorization',
    'credential', 'client_secret', 'access_token', 'client_token',
]

LEVEL_ORDER = [LogLevel.DEBUG, LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR]


# Strategies for generating valid test data

@st.composite
def log_level_strategy(draw) -> LogLevel:
    """Generate valid LogLevel values."""
    return draw(st.sampled_from(list(LogLevel)))


@st.composite
def component_name_strategy(draw) -> str:
    """Generate valid component names."""
    return draw(st.sampled_from([
        "DiffEngine", "MutationApplier", "PropagationMonitor",
        "UpdateOrchestrator", "ReportingOrchestrator",
    ]))


@st.composite
def message_strategy(draw) -> str:
    """Generate valid log messages."""
    return draw(st.text(
        alphabet=st.characters(
            whitelist_categories=('L', 'N', 'P', 'S', 'Z'),
            blacklist_characters='\x00\n\r',
        ),
        min_size=1,
        max_size=200,
    ))


@st.composite
def non_sensitive_key_strategy(draw) -> str:
    """Generate keys that are NOT sensitive."""
    key = draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz_"),
        min_size=1,
        max_size=20,
    ))
    for pattern in SENSITIVE_PATTERNS:
        assume(pattern not in key)
    return key


@st.composite
def sensitive_key_strategy(draw) -> str:
    """Generate keys that ARE sensitive."""
    base = draw(st.sampled_from(SENSITIVE_PATTERNS))
    prefix = draw(st.sampled_from(['', 'api_', 'edgegrid_', 'X-']))
    suffix = draw(st.sampled_from(['', '_value', '_header', 'S']))
    return f"{prefix}{base}{suffix}"


@st.composite
def simple_value_strategy(draw):
    """Generate simple JSON-serializable values."""
    return draw(st.one_of(
        st.text(min_size=0, max_size=50),
        st.integers(min_value=-1000, max_value=1000),
        st.floats(allow_nan=False, allow_infinity=False, min_value=-1000, max_value=1000),
        st.booleans(),
        st.none(),
    ))


@st.composite
def non_sensitive_data_strategy(draw) -> dict:
    """Generate data dictionaries without sensitive keys."""
    return draw(st.dictionaries(
        non_sensitive_key_strategy(),
        simple_value_strategy(),
        max_size=5,
    ))


class TestOutputFormatProperty:
    """
    Property-based tests for output formats.

    Property 18: Entries are written in the configured format(s)
    """

    @given(
        level=log_level_strategy(),
        component=component_name_strategy(),
        message=message_strategy(),
        data=non_sensitive_data_strategy(),
    )
    @settings(max_examples=100)
    def test_both_format_produces_two_lines(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: dict,
    ) -> None:
        """
        Property 18a: 'both' writes JSON and text.

        *For any* entry, when output_format is "both", the logger SHALL write
        a JSON line followed by a human-readable text line.
        """
        output = StringIO()
        logger = AuditLogger(output_format="both", output_stream=output, level="debug")

        logger.log(level, component, message, data)

        lines = output.getvalue().strip().split('\n')
        assert len(lines) == 2

        parsed = json.loads(lines[0])
        assert parsed["level"] == level.value
        assert parsed["component"] == component
        assert parsed["message"] == message
        assert parsed["data"] == data
        assert "timestamp" in parsed

        assert level.value.upper() in lines[1]
        assert f"[{component}]" in lines[1]
        assert message in lines[1]

    @given(
        level=log_level_strategy(),
        component=component_name_strategy(),
        message=message_strategy(),
    )
    @settings(max_examples=100)
    def test_json_only_format(self, level: LogLevel, component: str, message: str) -> None:
        """
        Property 18b: 'json' writes exactly one JSON line.
        """
        output = StringIO()
        logger = AuditLogger(output_format="json", output_stream=output, level="debug")

        logger.log(level, component, message)

        lines = [line for line in output.getvalue().split('\n') if line]
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == message

    def test_invalid_format_rejected(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger(output_format="xml")

    def test_invalid_level_rejected(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger(level="verbose")


class TestLevelFilterProperty:
    """
    Property 19: Entries below the minimum level are dropped
    """

    @given(
        minimum=log_level_strategy(),
        level=log_level_strategy(),
        message=message_strategy(),
    )
    @settings(max_examples=100)
    def test_level_filtering(self, minimum: LogLevel, level: LogLevel, message: str) -> None:
        """
        *For any* minimum level and entry level, the entry SHALL be written
        if and only if its level is at least the minimum.
        """
        output = StringIO()
        logger = AuditLogger(output_format="text", output_stream=output, level=minimum.value)

        entry = logger.log(level, "DiffEngine", message)

        expected = LEVEL_ORDER.index(level) >= LEVEL_ORDER.index(minimum)
        assert (entry is not None) == expected
        assert bool(output.getvalue()) == expected
        assert len(logger.entries) == (1 if expected else 0)


class TestSensitiveDataMaskingProperty:
    """
    Property 20: Credentials never reach log output
    """

    @given(
        key=sensitive_key_strategy(),
        value=st.text(alphabet="ABCDEFGHIJKLMNOP0123456789", min_size=12, max_size=40),
    )
    @settings(max_examples=100)
    def test_sensitive_data_masked(self, key: str, value: str) -> None:
        """
        Property 20a: Sensitive values are masked.

        *For any* key naming a credential, its value SHALL be replaced with
        the mask in both the entry and the written output.
        """
        output = StringIO()
        logger = AuditLogger(output_format="both", output_stream=output)

        payload = {"domain": "example.akadns.net", key: value}
        entry = logger.log(LogLevel.INFO, "ConfigClient", "request", payload)

        assert entry.data[key] == AuditLogger.MASK_VALUE
        assert value not in output.getvalue()

    @given(data=non_sensitive_data_strategy())
    @settings(max_examples=100)
    def test_non_sensitive_data_not_masked(self, data: dict) -> None:
        """Property 20b: Other values pass through unchanged."""
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        entry = logger.log(LogLevel.INFO, "ConfigClient", "request", data)
        assert entry.data == data

    @given(
        key=sensitive_key_strategy(),
        value=st.text(alphabet="xyz0123456789", min_size=12, max_size=30),
    )
    @settings(max_examples=100)
    def test_nested_sensitive_data_masked(self, key: str, value: str) -> None:
        """
        Property 20c: Masking is recursive.

        *For any* credential nested in dictionaries or lists of dictionaries,
        its value SHALL be masked.
        """
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        entry = logger.log(LogLevel.INFO, "ConfigClient", "request", {
            "request": {"headers": {key: value}},
            "attempts": [{key: value, "status": 401}],
        })

        assert entry.data["request"]["headers"][key] == AuditLogger.MASK_VALUE
        assert entry.data["attempts"][0][key] == AuditLogger.MASK_VALUE
        assert entry.data["attempts"][0]["status"] == 401


class TestErrorContextProperty:
    """
    Property 21: Error entries carry the exception context
    """

    @given(
        message=message_strategy(),
        extra=non_sensitive_data_strategy(),
    )
    @settings(max_examples=100)
    def test_error_logs_include_error_context(self, message: str, extra: dict) -> None:
        """
        *For any* error and additional data, the entry SHALL be at ERROR level
        and carry the error type, the error text and the additional data.
        """
        assume("error_message" not in extra and "error_type" not in extra)
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        error = RemoteServiceError(code="http_400", message=message)

        entry = logger.log_error("MutationApplier", "Update failed", error=error, additional_data=extra)

        assert entry.level == LogLevel.ERROR
        assert entry.data["error_type"] == "RemoteServiceError"
        assert entry.data["error_message"] == message
        for key, value in extra.items():
            assert entry.data[key] == value

    def test_error_without_exception(self) -> None:
        logger = AuditLogger(output_format="text", output_stream=StringIO())
        entry = logger.log_error("MutationApplier", "Update failed")
        assert "error_type" not in entry.data
