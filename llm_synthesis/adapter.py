"""LLM adapters for snapshot synthesis.

Provides a base interface and concrete adapters for OpenAI-compatible
APIs and a deterministic mock for testing.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Optional

from llm_synthesis.schema import PLACEHOLDER_ID


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one system + user exchange and return the raw completion text.

        Args:
            system_prompt: Instruction preamble for the system role.
            user_prompt: User message embedding the shape contract and data.

        Returns:
            Raw string response from the model (expected to be JSON). May be
            empty when the service returns no content.
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Non-streaming, single request. No retry happens here; transport errors
    propagate to the caller.
    """

    def __init__(
        self,
        model: str = "gpt-4.1-mini",
        temperature: float = 0.2,
        max_tokens: int = 4096,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens in the completion.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        from openai import OpenAI

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        client_kwargs: dict = {"api_key": resolved_key}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            stream=False,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


# ---------------------------------------------------------------------------
# Fixed mock response used for local testing.
# ---------------------------------------------------------------------------
_MOCK_RESPONSE = {
    "shopId": "mock-shop",
    "timeRangeDescription": "Imported history",
    "totalRepairOrders": 0,
    "totalRevenue": 0,
    "averageRo": 0,
    "mostCommonRepairs": [],
    "highValueRepairs": [],
    "comebackRisks": [],
    "fleetMetrics": [],
    "menuSuggestions": [
        {
            "id": PLACEHOLDER_ID,
            "name": "Brake Service Package",
            "description": "Pads, rotors inspection and brake fluid check.",
            "targetVehicleYmm": None,
            "estimatedLaborHours": 1.5,
            "recommendedPrice": 289,
            "basedOnJobs": ["Brake pad replacement"],
        }
    ],
    "inspectionSuggestions": [
        {
            "id": PLACEHOLDER_ID,
            "name": "Multi-point Inspection",
            "usageContext": "retail",
            "note": "Attach to every oil service.",
        }
    ],
    "narrativeSummary": "Mock summary for testing purposes.",
}

_MOCK_RESPONSE_JSON = json.dumps(_MOCK_RESPONSE, indent=2)


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns a fixed JSON response.

    Used for local runs and CI where no LLM API is available. A custom
    ``response`` can be supplied to exercise parsing paths.
    """

    def __init__(self, response: Optional[str] = None) -> None:
        self._response = _MOCK_RESPONSE_JSON if response is None else response
        self.calls: list[tuple[str, str]] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self._response
