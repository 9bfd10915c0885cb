# hypertension_coach/components/gateway_client.py
"""
Access to the upstream completion gateway (OpenAI-compatible chat/completions).

- GatewayLLM: LangChain-compatible LLM for one-shot summaries (trend analysis),
  retried with tenacity and guarded by the gateway circuit breaker.
- post_chat_completion(): raw requests call used by the /api/coach proxy; with
  stream=True the caller relays the SSE body as it arrives.
"""
from typing import Any, Dict, List, Optional

import requests
from langchain_core.callbacks import CallbackManagerForLLMRun
from langchain_core.language_models.llms import LLM
from pydantic import Field
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from hypertension_coach.common.circuit_breaker import CircuitBreakerError, get_gateway_breaker
from hypertension_coach.common.custom_exception import GatewayError
from hypertension_coach.common.logger import get_logger
from hypertension_coach.config.config import (
    API_TIMEOUT,
    GATEWAY_API_KEY,
    GATEWAY_MODEL,
    GATEWAY_URL,
    MAX_RETRIES,
    RETRY_DELAY,
)

logger = get_logger(__name__)


def _headers(api_key: str) -> Dict[str, str]:
    if not api_key:
        raise GatewayError("GATEWAY_API_KEY is not configured")
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def post_chat_completion(
    messages: List[Dict[str, str]],
    stream: bool = False,
    http: Optional[requests.Session] = None,
    url: str = GATEWAY_URL,
    api_key: str = GATEWAY_API_KEY,
    model: str = GATEWAY_MODEL,
) -> requests.Response:
    """
    POST a chat completion. The response is returned unread so that a streamed
    body can be relayed; callers check status_code themselves.
    """
    payload: Dict[str, Any] = {"model": model, "messages": messages}
    if stream:
        payload["stream"] = True
    http = http or requests
    try:
        return http.post(url, headers=_headers(api_key), json=payload, stream=stream, timeout=API_TIMEOUT)
    except requests.RequestException as e:
        logger.error(f"Completion gateway unreachable: {e}")
        raise GatewayError("Completion gateway unreachable", e)


class GatewayLLM(LLM):
    """LangChain wrapper sending one system + user turn to the completion gateway"""
    endpoint_url: str = Field(default=GATEWAY_URL)
    api_key: str = Field(default_factory=lambda: GATEWAY_API_KEY)
    model_name: str = Field(default=GATEWAY_MODEL)
    system_prompt: Optional[str] = None

    @property
    def _llm_type(self) -> str:
        return "completion_gateway"

    @property
    def _identifying_params(self) -> Dict[str, Any]:
        return {"endpoint_url": self.endpoint_url, "model_name": self.model_name}

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_fixed(RETRY_DELAY),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def _post(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        response = requests.post(
            self.endpoint_url,
            headers=_headers(self.api_key),
            json={"model": self.model_name, "messages": messages},
            timeout=API_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()

    def _call(
        self,
        prompt: str,
        stop: Optional[List[str]] = None,
        run_manager: Optional[CallbackManagerForLLMRun] = None,
        **kwargs: Any,
    ) -> str:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})

        breaker = get_gateway_breaker()
        try:
            result = breaker.call(self._post, messages)
        except CircuitBreakerError as e:
            raise GatewayError("Completion gateway temporarily unavailable", e)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"Completion gateway returned HTTP {status}")
            raise GatewayError("Completion gateway error", e, status_code=status)
        except requests.RequestException as e:
            raise GatewayError("Completion gateway unreachable", e)

        choices = result.get("choices") if isinstance(result, dict) else None
        first = choices[0] if isinstance(choices, list) and choices else None
        message = first.get("message") if isinstance(first, dict) else None
        content = (message.get("content") or "") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise GatewayError(f"Unexpected completion gateway response: {str(result)[:200]}")
        return content.strip()
