"""Pydantic models for API requests and responses"""
from .session import (
    SessionCreateResponse,
    DatasetResponse,
    QuestionRequest,
    MessageModel,
    ExchangeResponse,
    ConversationResponse,
    ErrorDetail,
    ErrorResponse
)

__all__ = [
    "SessionCreateResponse",
    "DatasetResponse",
    "QuestionRequest",
    "MessageModel",
    "ExchangeResponse",
    "ConversationResponse",
    "ErrorDetail",
    "ErrorResponse"
]
