"""
Unit tests for the oracle adapter: reply decoding, per-field interpretation
fallbacks and the Gemini HTTP client (driven through httpx.MockTransport).
"""
import json

import httpx
import pytest

from ecopledge.core.config import settings
from ecopledge.services import oracle as oracle_module
from ecopledge.services.oracle import (
    GeminiOracle,
    NullOracle,
    OracleUnavailableError,
    extract_json_array,
    extract_json_object,
    fallback_interpretation,
    get_oracle,
    interpret_commitment,
)

TEXT = "I will bike to work every weekday"


# ---------------------------------------------------------------------------
# Reply decoding
# ---------------------------------------------------------------------------

class TestExtractJson:
    def test_object_inside_prose(self):
        reply = 'Sure! Here it is:\n```json\n{"category": "transport"}\n```\nHope it helps.'
        assert extract_json_object(reply) == {"category": "transport"}

    def test_array_inside_prose(self):
        assert extract_json_array('Result: [{"title": "a"}, {"title": "b"}] done') == [
            {"title": "a"}, {"title": "b"},
        ]

    def test_no_json_returns_none(self):
        assert extract_json_object("I cannot help with that.") is None
        assert extract_json_array("nothing here") is None

    def test_broken_json_returns_none(self):
        assert extract_json_object('{"category": transport}') is None

    def test_wrong_shape_returns_none(self):
        # A bare array has no {...} span that decodes to an object.
        assert extract_json_object("[1, 2, 3]") is None


# ---------------------------------------------------------------------------
# interpret_commitment
# ---------------------------------------------------------------------------

class TestInterpretCommitment:
    def test_full_reply(self, oracle):
        oracle.replies = [json.dumps({
            "category": "transport",
            "frequency": "daily",
            "parameters": {"distance_km": 12},
            "extractedDetails": "Bike commute on weekdays",
        })]
        result = interpret_commitment(TEXT, oracle)
        assert result.category == "transport"
        assert result.frequency == "daily"
        assert result.parameters == {"distance_km": 12}
        assert result.extracted_details == "Bike commute on weekdays"
        assert result.degraded is False
        assert TEXT in oracle.prompts[0]

    def test_category_defaults_alone(self, oracle):
        oracle.replies = ['{"category": "spaceflight", "frequency": "weekly"}']
        result = interpret_commitment(TEXT, oracle)
        assert result.category == "other"
        assert result.frequency == "weekly"
        assert result.degraded is False

    def test_frequency_defaults_alone(self, oracle):
        oracle.replies = ['{"category": "food", "frequency": "hourly"}']
        result = interpret_commitment(TEXT, oracle)
        assert result.category == "food"
        assert result.frequency == "once"

    def test_parameters_and_details_default(self, oracle):
        oracle.replies = ['{"category": "energy", "parameters": "lots", "extractedDetails": "  "}']
        result = interpret_commitment(TEXT, oracle)
        assert result.parameters == {}
        assert result.extracted_details == TEXT

    def test_case_insensitive_enums(self, oracle):
        oracle.replies = ['{"category": "Transport", "frequency": " DAILY "}']
        result = interpret_commitment(TEXT, oracle)
        assert (result.category, result.frequency) == ("transport", "daily")

    def test_unavailable_oracle_uses_fallback(self, oracle):
        result = interpret_commitment(TEXT, oracle)
        assert result == fallback_interpretation(TEXT)
        assert result.degraded is True
        assert (result.category, result.frequency, result.parameters) == ("other", "once", {})

    def test_undecodable_reply_uses_fallback(self, oracle):
        oracle.replies = ["I think this is about transport."]
        assert interpret_commitment(TEXT, oracle).degraded is True

    @pytest.mark.parametrize("exc", [
        RuntimeError("socket closed"),
        TimeoutError("timed out"),
        httpx.InvalidURL("Invalid port: 'abc'"),
    ])
    def test_any_oracle_exception_uses_fallback(self, oracle, exc):
        oracle.replies = [exc]
        result = interpret_commitment(TEXT, oracle)
        assert result == fallback_interpretation(TEXT)
        assert result.degraded is True

    def test_details_truncated_to_100_chars(self):
        text = "x" * 250
        assert fallback_interpretation(text).extracted_details == "x" * 100


# ---------------------------------------------------------------------------
# Oracle implementations
# ---------------------------------------------------------------------------

def _gemini(handler) -> GeminiOracle:
    return GeminiOracle(
        api_key="test-key",
        model="gemini-pro",
        base_url="https://gemini.test/v1beta/",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


class TestGeminiOracle:
    def test_returns_candidate_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = f"{request.url.scheme}://{request.url.host}{request.url.path}"
            seen["key"] = request.url.params["key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": '{"a": '}, {"text": "1}"}]}}],
            })

        assert _gemini(handler).generate("hello") == '{"a": 1}'
        assert seen["url"] == "https://gemini.test/v1beta/models/gemini-pro:generateContent"
        assert seen["key"] == "test-key"
        assert seen["body"] == {"contents": [{"parts": [{"text": "hello"}]}]}

    def test_http_error_is_unavailable(self):
        oracle = _gemini(lambda request: httpx.Response(503, json={"error": "overloaded"}))
        with pytest.raises(OracleUnavailableError):
            oracle.generate("hello")

    def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(OracleUnavailableError):
            _gemini(handler).generate("hello")

    def test_non_json_body_is_unavailable(self):
        oracle = _gemini(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(OracleUnavailableError):
            oracle.generate("hello")

    @pytest.mark.parametrize("body", [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": [{"text": "   "}]}}]},
    ])
    def test_missing_or_empty_text_is_unavailable(self, body):
        oracle = _gemini(lambda request: httpx.Response(200, json=body))
        with pytest.raises(OracleUnavailableError):
            oracle.generate("hello")

    def test_interpretation_degrades_on_http_failure(self):
        oracle = _gemini(lambda request: httpx.Response(500))
        assert interpret_commitment(TEXT, oracle).degraded is True

    def test_interpretation_degrades_when_transport_crashes(self):
        def handler(request):
            raise RuntimeError("connection reset by peer")

        assert interpret_commitment(TEXT, _gemini(handler)).degraded is True


class TestGetOracle:
    def test_null_oracle_without_key(self, monkeypatch):
        monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
        o = get_oracle()
        assert isinstance(o, NullOracle)
        with pytest.raises(OracleUnavailableError):
            o.generate("anything")

    def test_gemini_oracle_with_key(self, monkeypatch):
        monkeypatch.setattr(settings, "GEMINI_API_KEY", "abc")
        monkeypatch.setattr(settings, "GEMINI_MODEL", "gemini-1.5-flash")
        o = get_oracle()
        assert isinstance(o, oracle_module.GeminiOracle)
        assert o.url.endswith("/models/gemini-1.5-flash:generateContent")
