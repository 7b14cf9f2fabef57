"""
CLI entry point for Stage 2 Analyst

Usage:
    python -m src.stage2_analyst <csv_path> <question> [chart_svg_path]

Examples:
    python -m src.stage2_analyst data/sales.csv "Total revenue by region?"
    python -m src.stage2_analyst data/sales.csv "Monthly trend" output/chart.svg

Requires GEMINI_API_KEY in the environment (GEMINI_MODEL is optional).
"""
import asyncio
import os
import sys
from pathlib import Path

from src.stage1_ingest import parse_csv

from .exceptions import AnalystError
from .llm_client import DEFAULT_MODEL, InferenceClient
from .prompt_builder import PromptBuilder
from .response_decoder import AnalysisResult, ResponseDecoder


async def run(csv_path: str, question: str) -> AnalysisResult:
    """Run a single exchange against one CSV file"""
    dataset = parse_csv(Path(csv_path).read_text(encoding="utf-8"))
    print(dataset.describe())

    request = PromptBuilder().build(question, dataset)
    client = InferenceClient(
        api_key=os.getenv("GEMINI_API_KEY", ""),
        model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL)
    )
    raw = await client.submit(request)
    return ResponseDecoder().decode(raw)


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)

    csv_path = sys.argv[1]
    question = sys.argv[2]
    chart_path = sys.argv[3] if len(sys.argv) > 3 else None

    try:
        result = asyncio.run(run(csv_path, question))
    except AnalystError as e:
        print(f"Error: {e.user_message}")
        sys.exit(1)

    print(result.analysis_text)
    if result.chart_svg and chart_path:
        Path(chart_path).write_text(result.chart_svg, encoding="utf-8")
        print(f"Chart written to {chart_path}")
