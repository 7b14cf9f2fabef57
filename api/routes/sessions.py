"""
Session API endpoints - upload a CSV, ask questions, read the conversation
"""
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File

from src.stage1_ingest import IngestError
from src.stage2_analyst import InferenceClient, Message, SessionBusyError

from ..config import settings
from ..dependencies import get_inference_client, get_session_manager
from ..models.session import (
    SessionCreateResponse, DatasetResponse, QuestionRequest,
    MessageModel, ExchangeResponse, ConversationResponse,
    ErrorDetail, ErrorResponse
)
from ..services.session_manager import AnalysisSession, SessionManager

router = APIRouter()

# HTTP status per failed-exchange kind
ERROR_STATUS = {
    "validation": 400,
    "busy": 409,
    "decode": 422,
    "service": 502,
}


def _get_session_or_404(manager: SessionManager, session_id: str) -> AnalysisSession:
    session = manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _busy_error(error: SessionBusyError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS["busy"],
        detail=ErrorDetail(error_kind=error.kind, message=error.user_message).model_dump()
    )


def _to_model(message: Message) -> MessageModel:
    return MessageModel(
        role=message.role.value,
        text=message.text,
        chart_svg=message.chart_svg,
        created_at=message.created_at
    )


@router.post("/sessions", response_model=SessionCreateResponse)
async def create_session(
    manager: SessionManager = Depends(get_session_manager),
    client: InferenceClient = Depends(get_inference_client)
):
    """
    Start a new analysis session.

    A session holds one dataset and its conversation; upload a CSV next.
    """
    session = manager.create_session(client)
    return SessionCreateResponse(
        session_id=session.session_id,
        message="Session created. Upload a CSV file to begin."
    )


@router.post(
    "/sessions/{session_id}/dataset",
    response_model=DatasetResponse,
    responses={ERROR_STATUS["busy"]: {"model": ErrorResponse}}
)
async def upload_dataset(
    session_id: str,
    file: UploadFile = File(...),
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Upload a CSV file into the session.

    Replaces any previous dataset and starts a fresh conversation.
    Lines whose field count differs from the header are skipped.
    """
    session = _get_session_or_404(manager, session_id)

    content = await file.read()
    max_bytes = settings.MAX_FILE_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large: {len(content) / 1024 / 1024:.1f}MB (max: {settings.MAX_FILE_SIZE_MB}MB)"
        )

    try:
        raw_text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File is not valid UTF-8 text")

    file_name = file.filename or "uploaded.csv"
    try:
        dataset = await session.upload(file_name, raw_text)
    except SessionBusyError as e:
        raise _busy_error(e)
    except IngestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DatasetResponse(
        file_name=file_name,
        row_count=dataset.row_count,
        column_count=dataset.column_count,
        columns=list(dataset.columns),
        message=dataset.describe()
    )


@router.post(
    "/sessions/{session_id}/questions",
    response_model=ExchangeResponse,
    responses={status: {"model": ErrorResponse} for status in ERROR_STATUS.values()}
)
async def ask_question(
    session_id: str,
    body: QuestionRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Ask a question about the session's dataset.

    Only one question may be in flight per session (409 otherwise).
    Failures return `{"error_kind", "message"}`: validation (400),
    decode (422), or service (502).
    """
    session = _get_session_or_404(manager, session_id)

    try:
        outcome = await session.ask(body.question)
    except SessionBusyError as e:
        raise _busy_error(e)

    if not outcome.ok:
        raise HTTPException(
            status_code=ERROR_STATUS.get(outcome.error_kind, 500),
            detail=ErrorDetail(error_kind=outcome.error_kind, message=outcome.detail).model_dump()
        )

    return ExchangeResponse(
        session_id=session_id,
        message=_to_model(session.conversation.last())
    )


@router.get("/sessions/{session_id}/messages", response_model=ConversationResponse)
async def get_messages(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """Get the session's conversation, oldest message first."""
    session = _get_session_or_404(manager, session_id)
    return ConversationResponse(
        session_id=session_id,
        file_name=session.file_name,
        messages=[_to_model(m) for m in session.conversation.all()],
        busy=session.busy
    )


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """End a session and discard its dataset and conversation."""
    if not manager.remove_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"message": "Session deleted", "session_id": session_id}
