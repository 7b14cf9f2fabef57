"""
Shared service instances and FastAPI dependencies
"""
from src.stage2_analyst import InferenceClient

from .config import settings
from .services.session_manager import SessionManager

# Sessions live in process memory only
session_manager = SessionManager(
    max_sessions=settings.MAX_SESSIONS,
    logs_dir=settings.LOGS_DIR if settings.SESSION_LOGS_ENABLED else None,
    sample_rows=settings.SAMPLE_ROWS
)


def get_session_manager() -> SessionManager:
    """FastAPI dependency for the session registry"""
    return session_manager


def get_inference_client() -> InferenceClient:
    """FastAPI dependency for a Gemini client built from settings"""
    return InferenceClient(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        url_template=settings.GEMINI_URL_TEMPLATE,
        timeout=settings.LLM_TIMEOUT_SECONDS
    )
