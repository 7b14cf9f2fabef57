"""
Decodes the inference service reply into an AnalysisResult

The service sometimes wraps its JSON payload in a markdown code fence;
fences are stripped before parsing.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .exceptions import DecodeError

logger = logging.getLogger(__name__)

JSON_FENCE_OPEN = "```json"
FENCE_CLOSE = "```"

NO_USABLE_RESPONSE = "no usable response"
UNPARSEABLE_RESPONSE = "unparseable AI response"
UNPARSEABLE_USER_MESSAGE = "The AI returned an unparseable response. Please try again or refine your question."


@dataclass(frozen=True)
class AnalysisResult:
    """Decoded outcome of one exchange"""
    analysis_text: str
    chart_svg: Optional[str] = None

    @property
    def has_chart(self) -> bool:
        return self.chart_svg is not None


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json marker and a trailing ``` marker if present"""
    if text.startswith(JSON_FENCE_OPEN):
        text = text[len(JSON_FENCE_OPEN):]
    if text.endswith(FENCE_CLOSE):
        text = text[:-len(FENCE_CLOSE)]
    return text.strip()


def extract_reply_text(raw: Any) -> Optional[str]:
    """Text of the first part of the first candidate, or None if any level is missing"""
    if not isinstance(raw, dict):
        return None
    candidates = raw.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    if not isinstance(content, dict):
        return None
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) else None


class ResponseDecoder:
    """Turns a raw generateContent reply into an AnalysisResult"""

    def decode(self, raw: Dict[str, Any]) -> AnalysisResult:
        """
        Decode a raw reply

        Args:
            raw: Reply dict as returned by InferenceClient.submit

        Returns:
            AnalysisResult; chart_svg stays None when the service sent null

        Raises:
            DecodeError if the content path is missing or the payload is not
            the expected two-field object
        """
        text = extract_reply_text(raw)
        if text is None:
            logger.error(f"Unexpected API response structure: no candidates or content parts found. {raw}")
            raise DecodeError(NO_USABLE_RESPONSE)

        cleaned = strip_code_fences(text)

        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse AI response as JSON: {e}")
            logger.error(f"Content preview (first 500 chars): {text[:500]}")
            raise self._unparseable(text) from e

        if not isinstance(payload, dict):
            logger.error(f"AI response is not a JSON object: {text[:500]}")
            raise self._unparseable(text)

        analysis_text = payload.get("analysis_text")
        if not isinstance(analysis_text, str):
            logger.error(f"AI response has no analysis_text string: {text[:500]}")
            raise self._unparseable(text)

        chart_svg = payload.get("chart_svg")
        if chart_svg is not None and not isinstance(chart_svg, str):
            logger.error(f"AI response chart_svg is neither string nor null: {type(chart_svg).__name__}")
            raise self._unparseable(text)

        logger.info(f"✅ Decoded analysis ({len(analysis_text)} characters, chart: {chart_svg is not None})")
        return AnalysisResult(analysis_text=analysis_text, chart_svg=chart_svg)

    @staticmethod
    def _unparseable(raw_text: str) -> DecodeError:
        return DecodeError(UNPARSEABLE_RESPONSE, user_message=UNPARSEABLE_USER_MESSAGE, raw_text=raw_text)
