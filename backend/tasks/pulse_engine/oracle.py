# tasks/pulse_engine/oracle.py
"""
Reasoning Oracle Client
=======================

Thin wrapper around the OpenAI Chat Completions API used as the engine's
"reasoning oracle": it receives a natural-language prompt plus a response
schema and must answer with a single JSON object.

This module has NO Django ORM dependencies. It handles prompt rendering,
API communication and JSON decoding. It does not validate the decoded
object against the schema; each caller supplies its own parser to the
orchestrator.

Failure Contract:
-----------------
Every failure (missing configuration, transport error, quota, malformed
JSON) is raised as ``OracleUnavailableError`` carrying a machine-readable
``error_code``. The orchestrator turns that into a move to the next tier.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.conf import settings
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    OpenAI,
    RateLimitError,
)

logger = logging.getLogger(__name__)


class OracleUnavailableError(Exception):
    """Raised when an oracle tier cannot produce a usable answer."""

    def __init__(self, error_code: str, message: str) -> None:
        super().__init__(f"{error_code}: {message}")
        self.error_code = error_code
        self.message = message


@dataclass(frozen=True)
class OracleRequest:
    prompt: str
    system_instruction: str
    response_schema: Dict[str, Any] = field(default_factory=dict)


class OracleClient:
    """
    Oracle bound to a single OpenAI model.

    The client uses DEFERRED INITIALIZATION: a missing API key never raises
    in ``__init__``. ``is_configured`` tracks readiness and ``generate``
    raises ``OracleUnavailableError("NOT_CONFIGURED", ...)`` instead, which
    lets the orchestrator skip straight to the next tier.

    Example:
        >>> oracle = OracleClient(model="gpt-4o-mini", timeout=5.0)
        >>> oracle.generate(OracleRequest(prompt="...", system_instruction="..."))
    """

    DEFAULT_MODEL: str = "gpt-4o"
    DEFAULT_TEMPERATURE: float = 0.2
    DEFAULT_MAX_TOKENS: int = 800
    DEFAULT_TIMEOUT: float = 10.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        **client_kwargs: Any,
    ) -> None:
        """
        Args:
            api_key: OpenAI API key. Falls back to settings.OPENAI_API_KEY.
            model: Model identifier for this tier.
            timeout: Per-call timeout in seconds.
            **client_kwargs: Extra keyword arguments for the OpenAI client.
        """
        self.model: str = model or self.DEFAULT_MODEL
        self.timeout: float = timeout or self.DEFAULT_TIMEOUT
        # A tier is attempted exactly once; the SDK must not retry behind our back.
        client_kwargs.setdefault("max_retries", 0)
        self._client_kwargs: Dict[str, Any] = client_kwargs

        self.client: Optional[OpenAI] = None
        self.is_configured: bool = False
        self.configuration_error: Optional[str] = None

        self._configure(api_key)

    def _configure(self, api_key: Optional[str] = None) -> None:
        resolved_key = api_key or getattr(settings, "OPENAI_API_KEY", None) or ""
        if not resolved_key:
            self.configuration_error = (
                "OPENAI_API_KEY is not configured. "
                "Set the OPENAI_API_KEY environment variable or Django setting."
            )
            logger.warning(f"OracleClient({self.model}): {self.configuration_error}")
            return

        try:
            self.client = OpenAI(api_key=resolved_key, **self._client_kwargs)
            self.is_configured = True
            self.configuration_error = None
            logger.info(f"OracleClient initialized with model={self.model}")
        except Exception as e:
            self.configuration_error = f"Failed to initialize OpenAI client: {str(e)}"
            logger.error(f"OracleClient({self.model}): {self.configuration_error}")
            self.client = None
            self.is_configured = False

    def generate(self, request: OracleRequest) -> Dict[str, Any]:
        """
        Send ``request`` to the model and return the decoded JSON object.

        Raises:
            OracleUnavailableError: on any failure, with one of the codes
                NOT_CONFIGURED, AUTH_ERROR, RATE_LIMIT, TIMEOUT,
                CONNECTION_ERROR, BAD_REQUEST, API_ERROR_<status>,
                EMPTY_RESPONSE, JSON_PARSE_ERROR, UNEXPECTED_ERROR.
        """
        if not self.is_configured or self.client is None:
            raise OracleUnavailableError(
                "NOT_CONFIGURED", self.configuration_error or "Oracle not available"
            )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(request),
                temperature=self.DEFAULT_TEMPERATURE,
                max_tokens=self.DEFAULT_MAX_TOKENS,
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )
            raw_content: str = response.choices[0].message.content or ""
        except AuthenticationError as e:
            logger.error(f"OpenAI authentication failed: {e}")
            raise OracleUnavailableError("AUTH_ERROR", "Invalid API key or authentication failed")
        except RateLimitError as e:
            logger.warning(f"OpenAI rate limit exceeded: {e}")
            raise OracleUnavailableError("RATE_LIMIT", "API rate limit exceeded")
        except APITimeoutError as e:
            logger.warning(f"OpenAI API timeout: {e}")
            raise OracleUnavailableError("TIMEOUT", "API request timed out")
        except APIConnectionError as e:
            logger.error(f"OpenAI connection error: {e}")
            raise OracleUnavailableError("CONNECTION_ERROR", "Could not connect to OpenAI API")
        except BadRequestError as e:
            logger.error(f"OpenAI bad request: {e}")
            raise OracleUnavailableError("BAD_REQUEST", "Invalid request to OpenAI API")
        except APIStatusError as e:
            logger.error(f"OpenAI API status error: {e.status_code} - {e}")
            raise OracleUnavailableError(
                f"API_ERROR_{e.status_code}",
                f"OpenAI API error (status {e.status_code})",
            )
        except Exception as e:
            logger.exception(f"Unexpected error in OracleClient: {e}")
            raise OracleUnavailableError(
                "UNEXPECTED_ERROR", f"Unexpected error: {type(e).__name__}"
            )

        logger.debug(f"OracleClient({self.model}): raw response {raw_content[:200]}...")
        return self._decode(raw_content)

    def _build_messages(self, request: OracleRequest) -> List[Dict[str, str]]:
        """
        The system instruction carries the role and the schema; the prompt
        carries the data. JSON mode requires the word "JSON" in the messages.
        """
        system_prompt = request.system_instruction
        if request.response_schema:
            system_prompt = (
                f"{system_prompt}\n\n"
                "Return ONLY valid JSON. No markdown, no commentary.\n"
                "The output must strictly follow this JSON schema: "
                f"{json.dumps(request.response_schema)}"
            )
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": request.prompt},
        ]

    def _decode(self, raw_json: str) -> Dict[str, Any]:
        if not raw_json:
            raise OracleUnavailableError("EMPTY_RESPONSE", "Empty response from oracle")
        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to decode oracle response as JSON: {e}")
            raise OracleUnavailableError("JSON_PARSE_ERROR", "Oracle returned invalid JSON")
        if not isinstance(data, dict):
            raise OracleUnavailableError("JSON_PARSE_ERROR", "Oracle response is not a JSON object")
        return data

    def health_check(self) -> Dict[str, Any]:
        return {
            "is_configured": self.is_configured,
            "model": self.model,
            "timeout": self.timeout,
            "configuration_error": self.configuration_error,
        }
