"""
Interpretation oracle adapter.

The oracle is an unreliable text-in/text-out model (Gemini). Nothing in this
package lets an oracle failure escape: every caller converts any exception
raised by `generate` or an undecodable reply into a deterministic fallback
and tags the result `degraded=True`.

Public API
----------
Oracle                                  protocol: generate(prompt) -> str
GeminiOracle / NullOracle               concrete oracles
get_oracle()                            FastAPI dependency (settings-driven)
extract_json_object(reply)              -> dict | None
extract_json_array(reply)               -> list | None
interpret_commitment(text, oracle)      -> Interpretation   (never raises)
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import httpx

from ecopledge.core.config import settings
from ecopledge.models.commitment import Category, Frequency

logger = logging.getLogger(__name__)

DETAILS_MAX_CHARS = 100

_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


# ---------------------------------------------------------------------------
# Oracle capability
# ---------------------------------------------------------------------------

class OracleUnavailableError(Exception):
    """The oracle could not produce a reply (no key, timeout, HTTP error, empty reply)."""


class Oracle(Protocol):
    def generate(self, prompt: str) -> str: ...


class NullOracle:
    """Oracle used when no API key is configured. Always unavailable."""

    def generate(self, prompt: str) -> str:
        raise OracleUnavailableError("oracle disabled: GEMINI_API_KEY is not set")


class GeminiOracle:
    """Calls the Gemini `generateContent` REST endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-pro",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def generate(self, prompt: str) -> str:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    self.url,
                    params={"key": self.api_key},
                    json=payload,
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise OracleUnavailableError(f"Gemini HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise OracleUnavailableError(f"Gemini request error: {e}") from e
        except ValueError as e:
            raise OracleUnavailableError("Gemini returned a non-JSON body") from e

        try:
            parts = body["candidates"][0]["content"]["parts"]
            text = "".join(p.get("text", "") for p in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise OracleUnavailableError("Gemini reply has no candidate text") from e
        if not text.strip():
            raise OracleUnavailableError("Gemini reply is empty")
        return text


def get_oracle() -> Oracle:
    if not settings.oracle_enabled:
        return NullOracle()
    return GeminiOracle(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        base_url=settings.GEMINI_BASE_URL,
        timeout=settings.ORACLE_TIMEOUT_SECONDS,
    )


# ---------------------------------------------------------------------------
# Reply decoding
# ---------------------------------------------------------------------------

def _decode(reply: str, pattern: re.Pattern, kind: type) -> Any:
    match = pattern.search(reply)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return None
    return parsed if isinstance(parsed, kind) else None


def extract_json_object(reply: str) -> Optional[dict]:
    """Decode the first `{...}` span of a model reply, or None."""
    return _decode(reply, _OBJECT_RE, dict)


def extract_json_array(reply: str) -> Optional[list]:
    """Decode the first `[...]` span of a model reply, or None."""
    return _decode(reply, _ARRAY_RE, list)


def ask(oracle: Oracle, prompt: str, purpose: str) -> Optional[str]:
    """Run one oracle call; returns None (and logs) if the call fails for any reason."""
    try:
        return oracle.generate(prompt)
    except OracleUnavailableError as exc:
        logger.warning("oracle unavailable for %s: %s", purpose, exc)
        return None
    except Exception:
        logger.warning("oracle call failed for %s", purpose, exc_info=True)
        return None


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------

@dataclass
class Interpretation:
    category: str
    frequency: str
    parameters: dict[str, Any] = field(default_factory=dict)
    extracted_details: str = ""
    degraded: bool = False


_INTERPRET_PROMPT = """Extract category, frequency, and key parameters from this sustainability commitment. Return JSON only.

Commitment: "{text}"

Extract:
- category: one of [{categories}]
- frequency: one of [{frequencies}]
- parameters: relevant details (e.g., distance, quantity, type)
- extractedDetails: brief summary

Return valid JSON format."""


def fallback_interpretation(text: str) -> Interpretation:
    return Interpretation(
        category=Category.other.value,
        frequency=Frequency.once.value,
        parameters={},
        extracted_details=text[:DETAILS_MAX_CHARS],
        degraded=True,
    )


def _enum_or(value: Any, enum_cls, default: str) -> str:
    if isinstance(value, str) and value.strip().lower() in enum_cls.__members__:
        return value.strip().lower()
    return default


def interpret_commitment(text: str, oracle: Oracle) -> Interpretation:
    """
    Turn free text into category / frequency / parameters.
    Each decoded field is defaulted on its own; only a missing or
    undecodable reply yields the all-fallback (degraded) result.
    """
    reply = ask(
        oracle,
        _INTERPRET_PROMPT.format(
            text=text,
            categories=", ".join(c.value for c in Category),
            frequencies=", ".join(f.value for f in Frequency),
        ),
        purpose="interpretation",
    )
    if reply is None:
        return fallback_interpretation(text)

    parsed = extract_json_object(reply)
    if parsed is None:
        logger.warning("oracle interpretation reply could not be decoded; using fallback")
        return fallback_interpretation(text)

    parameters = parsed.get("parameters")
    details = parsed.get("extractedDetails")
    return Interpretation(
        category=_enum_or(parsed.get("category"), Category, Category.other.value),
        frequency=_enum_or(parsed.get("frequency"), Frequency, Frequency.once.value),
        parameters=parameters if isinstance(parameters, dict) else {},
        extracted_details=(
            details if isinstance(details, str) and details.strip() else text[:DETAILS_MAX_CHARS]
        ),
        degraded=False,
    )
