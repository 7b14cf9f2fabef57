"""
Builds the bounded-context analysis prompt sent to the inference service

Only the first rows of the dataset go into the prompt, together with the
column schema, so request size stays bounded regardless of upload size.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from src.stage1_ingest import Dataset

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_ROWS = 10

# Two-field output contract, in Gemini responseSchema form.
# chart_svg may come back as null even though it is declared as a string.
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "analysis_text": {"type": "STRING"},
        "chart_svg": {"type": "STRING", "nullable": True},
    },
    "required": ["analysis_text"],
    "propertyOrdering": ["analysis_text", "chart_svg"],
}

PROMPT_TEMPLATE = """Act as a Business Analyst. Analyze the provided tabular data based on the user's question.

User's Question: "{question}"

Data Schema (Columns): {schema}

Sample Data (first {sample_size} rows):
{sample}

Provide key metrics, trends, anomalies, and recommendations relevant to the question.
If a visualization (bar, line, or pie chart) is suitable for the analysis, generate an SVG string for the chart.
Ensure the SVG is well-formed and visually clear.

Output your response in the following JSON format:
{{
  "analysis_text": "string (the textual analysis, insights, and recommendations)",
  "chart_svg": "string | null (SVG string of the chart, or null if no chart is generated)"
}}"""


@dataclass(frozen=True)
class PromptRequest:
    """A built prompt ready for submission"""
    question: str
    prompt: str
    sample_size: int
    response_schema: Dict[str, Any] = field(default_factory=lambda: RESPONSE_SCHEMA)


class PromptBuilder:
    """Derives a schema-aware analysis request from a question and a dataset"""

    def __init__(self, sample_rows: int = DEFAULT_SAMPLE_ROWS):
        """
        Args:
            sample_rows: Maximum number of leading rows embedded in the prompt
        """
        if sample_rows < 1:
            raise ValueError("sample_rows must be at least 1")
        self.sample_rows = sample_rows

    def build(self, question: str, dataset: Dataset) -> PromptRequest:
        """
        Build the prompt for one exchange

        Args:
            question: The user's natural-language question
            dataset: Parsed dataset of the current session

        Returns:
            PromptRequest with the prompt text and declared response schema

        Raises:
            ValidationError if the question is blank or the dataset has no rows
        """
        if not question or not question.strip():
            raise ValidationError("question is empty")
        if dataset.is_empty:
            raise ValidationError("dataset has no rows")

        sample = dataset.head(self.sample_rows)
        prompt = PROMPT_TEMPLATE.format(
            question=question,
            schema=", ".join(dataset.columns),
            sample_size=len(sample),
            sample=json.dumps(sample, indent=2, ensure_ascii=False),
        )

        logger.info(f"Built prompt with {len(sample)} sample rows ({len(prompt)} characters)")
        return PromptRequest(question=question, prompt=prompt, sample_size=len(sample))
