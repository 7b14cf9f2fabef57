"""
Structured logging module for analysis sessions
"""
from .structured_logger import SessionLogger, LogLevel

__all__ = ["SessionLogger", "LogLevel"]
