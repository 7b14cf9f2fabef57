"""
Pydantic models for session-related API requests and responses
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class SessionCreateResponse(BaseModel):
    """Response for session creation"""
    session_id: str = Field(..., description="Unique session identifier (UUID)")
    message: str = Field(..., description="Status message")


class DatasetResponse(BaseModel):
    """Shape of the dataset loaded into a session"""
    file_name: str = Field(..., description="Uploaded file name")
    row_count: int = Field(..., description="Rows accepted by the parser")
    column_count: int = Field(..., description="Number of header columns")
    columns: List[str] = Field(..., description="Column names in header order")
    message: str = Field(..., description="Human-readable summary")


class QuestionRequest(BaseModel):
    """A natural-language question about the session's dataset"""
    question: str = Field(..., description="Question to ask about the data")


class MessageModel(BaseModel):
    """One entry of the conversation log"""
    role: str = Field(..., description="user, assistant, or system-notice")
    text: str = Field(..., description="Message body")
    chart_svg: Optional[str] = Field(None, description="SVG chart document, if any")
    created_at: datetime = Field(..., description="When the message was appended")


class ExchangeResponse(BaseModel):
    """Response for a successful exchange"""
    session_id: str = Field(..., description="Session identifier")
    message: MessageModel = Field(..., description="The assistant's answer")


class ConversationResponse(BaseModel):
    """Full conversation of a session"""
    session_id: str = Field(..., description="Session identifier")
    file_name: Optional[str] = Field(None, description="Currently loaded file, if any")
    messages: List[MessageModel] = Field(..., description="Messages, oldest first")
    busy: bool = Field(..., description="Whether an exchange is in flight")


class ErrorDetail(BaseModel):
    """Error body for failed exchanges"""
    error_kind: str = Field(..., description="validation, service, decode, or busy")
    message: str = Field(..., description="User-facing error message")


class ErrorResponse(BaseModel):
    """Body FastAPI returns for a failed exchange"""
    detail: ErrorDetail = Field(..., description="Error kind and message")
