"""
Stage 2: The Analyst - LLM-based question answering over a parsed dataset

Builds a bounded prompt from a question and a data sample, submits it to
Gemini, and decodes the JSON reply into an analysis with an optional SVG chart.
"""

from .prompt_builder import PromptBuilder, PromptRequest, RESPONSE_SCHEMA
from .llm_client import InferenceClient
from .response_decoder import AnalysisResult, ResponseDecoder, strip_code_fences
from .conversation import ConversationLog, Message, MessageRole
from .exceptions import (
    AnalystError,
    ValidationError,
    ServiceError,
    DecodeError,
    SessionBusyError
)

__all__ = [
    # Exchange pipeline
    'PromptBuilder',
    'PromptRequest',
    'RESPONSE_SCHEMA',
    'InferenceClient',
    'ResponseDecoder',
    'AnalysisResult',
    'strip_code_fences',
    # Conversation
    'ConversationLog',
    'Message',
    'MessageRole',
    # Errors
    'AnalystError',
    'ValidationError',
    'ServiceError',
    'DecodeError',
    'SessionBusyError'
]
