"""OpenAI chat completions client for transaction analysis"""

import json
import time
from typing import Any, Dict, List, Optional

import httpx

from money_dashboard.config import settings
from money_dashboard.domain.exceptions import LLMAPIError
from money_dashboard.domain.models import BonusRange
from money_dashboard.infrastructure.clients.prompts import ANALYSIS_JSON_SCHEMA, SYSTEM_PROMPT, build_analysis_prompt
from money_dashboard.infrastructure.observability.metrics import llm_latency_histogram


class LLMClient:
    """Client for an OpenAI-compatible chat completions API"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_model
        self.timeout = timeout or settings.llm_timeout_seconds
        self.transport = transport

    async def analyze_transactions(
        self,
        transactions: List[Dict[str, Any]],
        paycheck_amount: Optional[float] = None,
        bonus_range: Optional[BonusRange] = None,
    ) -> Dict[str, Any]:
        """
        Ask the model to classify indexed transactions.

        Returns the parsed JSON object; validation happens in domain.analysis.

        Raises:
            LLMAPIError: On timeout, HTTP errors, or a response that is not a JSON object
        """
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_analysis_prompt(transactions, paycheck_amount, bonus_range)},
            ],
            "temperature": 0.1,
            "max_tokens": 2000,
            "response_format": {"type": "json_schema", "json_schema": ANALYSIS_JSON_SCHEMA},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        start = time.perf_counter()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
                response.raise_for_status()
                content = response.json()["choices"][0]["message"]["content"]
                if not content:
                    raise ValueError("empty completion")
                parsed = json.loads(content)
                if not isinstance(parsed, dict):
                    raise ValueError(f"expected object, got {type(parsed).__name__}")
                return parsed

            except httpx.TimeoutException as e:
                raise LLMAPIError(f"LLM timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise LLMAPIError(f"LLM API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise LLMAPIError(f"LLM API unreachable: {e}") from e
            except (KeyError, IndexError, ValueError, TypeError) as e:
                raise LLMAPIError(f"Invalid analysis response: {e}") from e
            finally:
                llm_latency_histogram.observe(time.perf_counter() - start)
