import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

MODEL_ID = "@cf/meta/llama-3.1-8b-instruct"
DEFAULT_AI_BASE_URL = "https://api.cloudflare.com/client/v4"


class ModelInvocationError(Exception):
    pass


class WorkersAiClient:
    """Minimal client for the Workers AI text-generation REST endpoint."""

    def __init__(
        self,
        account_id: str,
        api_token: str,
        base_url: str = DEFAULT_AI_BASE_URL,
        model: str = MODEL_ID,
        timeout: int = 60,
    ) -> None:
        self.account_id = account_id
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/accounts/{self.account_id}/ai/run/{self.model}"

    async def run(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Send a chat completion request and return the generated text."""
        payload = {
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {"Authorization": f"Bearer {self.api_token}"}

        try:
            async with aiohttp.ClientSession(headers=headers, timeout=self.timeout) as session:
                async with session.post(self.endpoint, json=payload) as response:
                    if response.status != 200:
                        body = await response.text()
                        raise ModelInvocationError(
                            f"Workers AI returned HTTP {response.status}: {body[:200]}"
                        )
                    data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ModelInvocationError(f"Network error calling Workers AI: {e}") from e
        except asyncio.TimeoutError as e:
            raise ModelInvocationError("Workers AI request timed out") from e
        except json.JSONDecodeError as e:
            raise ModelInvocationError("Workers AI returned a non-JSON body") from e

        return response_text(data)


def response_text(data: Any) -> str:
    """Pull the generated text out of a Workers AI response envelope."""
    if isinstance(data, str):
        return data
    if not isinstance(data, dict):
        return ""
    result: Optional[Any] = data.get("result", data)
    if isinstance(result, dict):
        generated = result.get("response")
        if isinstance(generated, str):
            return generated
        # some models hand back already-parsed JSON
        if isinstance(generated, (dict, list)):
            return json.dumps(generated)
    return ""
