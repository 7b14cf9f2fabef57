"""
Gemini API client for the analysis exchange

One POST per submission, no retries: retry policy belongs to the caller.
The reply is returned un-decoded; see response_decoder for interpretation.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

import httpx

from .exceptions import ServiceError
from .prompt_builder import PromptRequest

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_URL_TEMPLATE = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class InferenceClient:
    """Async client for the Gemini generateContent endpoint"""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        url_template: str = DEFAULT_URL_TEMPLATE,
        timeout: Optional[float] = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize inference client

        Args:
            api_key: Gemini API key, sent as a header and never placed in the URL
            model: Model identifier substituted into the URL template
            url_template: Endpoint URL with a {model} placeholder
            timeout: Request timeout in seconds (None disables it)
            transport: Optional httpx transport, used by tests to stub the service
        """
        self.api_key = api_key
        self.model = model
        self.endpoint = url_template.format(model=model)
        self.timeout = timeout
        self.transport = transport

    def build_payload(self, request: PromptRequest) -> Dict[str, Any]:
        """Request body for generateContent"""
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": request.prompt}]
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": request.response_schema
            }
        }

    async def submit(self, request: PromptRequest) -> Dict[str, Any]:
        """
        Submit a prompt and return the raw reply

        Args:
            request: Built prompt request

        Returns:
            Parsed JSON reply (candidate list with nested content), un-decoded

        Raises:
            ServiceError on network failure, non-200 status, or a non-JSON body
        """
        logger.info(f"Calling LLM: {self.model}")
        logger.debug(f"Prompt size: {len(request.prompt)} characters")

        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key
        }
        payload = self.build_payload(request)

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"API request failed: {type(e).__name__}: {e}")
            raise ServiceError(
                f"LLM API call failed: {e}",
                user_message=f"There was an error processing your request: {e}. Please try again."
            ) from e

        elapsed_time = time.time() - start_time
        logger.info(f"API response received in {elapsed_time:.2f} seconds (status {response.status_code})")

        if response.status_code != 200:
            message = self._error_message(response)
            logger.error(f"API Error ({response.status_code}): {message}")
            raise ServiceError(message or "Unknown error", status_code=response.status_code)

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse API response as JSON: {e}")
            logger.error(f"Response text: {response.text[:1000]}")
            raise ServiceError(f"Invalid JSON response from API: {e}", status_code=response.status_code) from e

        usage = result.get("usageMetadata") if isinstance(result, dict) else None
        if isinstance(usage, dict):
            logger.info(
                f"Token usage - Prompt: {usage.get('promptTokenCount', 'N/A')}, "
                f"Completion: {usage.get('candidatesTokenCount', 'N/A')}, "
                f"Total: {usage.get('totalTokenCount', 'N/A')}"
            )

        return result

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        """Remote-reported error message, if the body carries one"""
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return None
