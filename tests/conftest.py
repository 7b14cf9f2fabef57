import asyncio
import json

import pytest


def gemini_reply(text, usage=None):
    """A generateContent reply whose first part carries `text`"""
    reply = {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}
    if usage:
        reply["usageMetadata"] = usage
    return reply


def analysis_reply(analysis_text, chart_svg=None):
    return gemini_reply(json.dumps({"analysis_text": analysis_text, "chart_svg": chart_svg}))


class FakeClient:
    """Stands in for InferenceClient; records requests and replays a reply or error"""

    model = "fake-model"

    def __init__(self, reply=None, error=None, gate=None):
        self.reply = reply
        self.error = error
        self.gate = gate
        self.requests = []

    async def submit(self, request):
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def revenue_csv():
    return "region,revenue\nEast,100\nWest,200\n"


@pytest.fixture
def run():
    return asyncio.run
