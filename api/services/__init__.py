"""Business logic services"""
from .session_manager import AnalysisSession, ExchangeOutcome, SessionManager

__all__ = [
    "AnalysisSession",
    "ExchangeOutcome",
    "SessionManager"
]
