"""
Structured JSON Logger for analysis sessions

Provides per-session logging with timestamps, exchange tracking, and metadata.
Logs are written to {logs_dir}/sessions/{session_id}/run.json
"""
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from enum import Enum
from dataclasses import dataclass
import threading


class LogLevel(str, Enum):
    """Log levels for structured logging"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class LogEntry:
    """A single log entry with timestamp and metadata"""
    timestamp: str
    level: str
    step: str
    message: str
    metadata: Optional[Dict[str, Any]] = None
    duration_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values"""
        result = {
            "timestamp": self.timestamp,
            "level": self.level,
            "step": self.step,
            "message": self.message,
        }
        if self.metadata:
            result["metadata"] = self.metadata
        if self.duration_ms is not None:
            result["duration_ms"] = self.duration_ms
        return result


class SessionLogger:
    """
    Per-session structured JSON logger.

    Creates a JSON log file at sessions/{session_id}/run.json with
    timestamped entries for uploads and question/answer exchanges.

    Thread-safe for concurrent logging.
    """

    PREVIEW_CHARS = 500

    def __init__(self, session_id: str, logs_dir: str = "./logs"):
        """
        Initialize session logger.

        Args:
            session_id: Unique session identifier
            logs_dir: Base directory for log files
        """
        self.session_id = session_id
        self.log_dir = Path(logs_dir) / "sessions" / session_id
        self.log_file = self.log_dir / "run.json"
        self._lock = threading.Lock()
        self._timers: Dict[str, float] = {}

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._write_log({
            "session_id": self.session_id,
            "started_at": self._now(),
            "logs": []
        })

    def _now(self) -> str:
        """Get current timestamp in ISO format with timezone"""
        return datetime.now(timezone.utc).isoformat()

    def _write_log(self, data: Dict[str, Any]) -> None:
        """Write log data to file (thread-safe)"""
        with self._lock:
            with open(self.log_file, 'w') as f:
                json.dump(data, f, indent=2, default=str)

    def _read_log(self) -> Dict[str, Any]:
        """Read current log data from file"""
        try:
            with open(self.log_file, 'r') as f:
                return json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return {"session_id": self.session_id, "started_at": self._now(), "logs": []}

    def _append_entry(self, entry: LogEntry) -> None:
        """Append a log entry to the file"""
        with self._lock:
            data = self._read_log()
            data["logs"].append(entry.to_dict())
            data["last_updated"] = self._now()
            with open(self.log_file, 'w') as f:
                json.dump(data, f, indent=2, default=str)

    def log(
        self,
        level: LogLevel,
        step: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        duration_ms: Optional[int] = None
    ) -> None:
        """
        Log a message with timestamp and optional metadata.

        Args:
            level: Log level (debug, info, warning, error)
            step: Step identifier (e.g., "dataset_upload", "exchange")
            message: Human-readable message
            metadata: Optional dictionary of additional data
            duration_ms: Optional duration in milliseconds
        """
        entry = LogEntry(
            timestamp=self._now(),
            level=level.value,
            step=step,
            message=message,
            metadata=metadata,
            duration_ms=duration_ms
        )
        self._append_entry(entry)

    def info(self, step: str, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Log an info message"""
        self.log(LogLevel.INFO, step, message, metadata)

    def exchange_start(self, exchange_id: str, question: str) -> None:
        """Mark the start of a question/answer exchange"""
        self._timers[exchange_id] = time.time()
        self.info(
            step="exchange",
            message=f"Starting exchange {exchange_id}",
            metadata={"exchange_id": exchange_id, "question": question[:self.PREVIEW_CHARS]}
        )

    def exchange_end(
        self,
        exchange_id: str,
        success: bool = True,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Mark the end of an exchange.

        Args:
            exchange_id: Identifier passed to exchange_start
            success: Whether an analysis was produced
            metadata: Optional metadata about the result or failure
        """
        duration_ms = None
        if exchange_id in self._timers:
            duration_ms = int((time.time() - self._timers.pop(exchange_id)) * 1000)

        level = LogLevel.INFO if success else LogLevel.ERROR
        status = "completed" if success else "failed"

        self.log(
            level=level,
            step="exchange",
            message=f"Exchange {exchange_id} {status}",
            metadata={"exchange_id": exchange_id, **(metadata or {})},
            duration_ms=duration_ms
        )

    def llm_call(
        self,
        prompt_preview: str,
        response_preview: str,
        tokens: Dict[str, int],
        duration_ms: int,
        model: str
    ) -> None:
        """
        Log an LLM API call with details.

        Args:
            prompt_preview: The prompt (truncated when stored)
            response_preview: The raw reply text (truncated when stored)
            tokens: Token usage dict (prompt_tokens, completion_tokens, total_tokens)
            duration_ms: API call duration in milliseconds
            model: Model identifier
        """
        metadata = {
            "model": model,
            "tokens": tokens,
            "prompt_preview": prompt_preview[:self.PREVIEW_CHARS] if prompt_preview else None,
            "response_preview": response_preview[:self.PREVIEW_CHARS] if response_preview else None,
        }

        self.log(
            level=LogLevel.INFO,
            step="llm_call",
            message=f"LLM call completed ({tokens.get('total_tokens', 'N/A')} tokens)",
            metadata=metadata,
            duration_ms=duration_ms
        )

    def record_dataset(self, file_name: str, row_count: int, column_count: int) -> None:
        """Record an uploaded dataset"""
        self.info(
            step="dataset_upload",
            message=f"Loaded dataset: {file_name}",
            metadata={
                "file_name": file_name,
                "row_count": row_count,
                "column_count": column_count
            }
        )

    def finalize(self) -> None:
        """Close the log with the session's end time and total duration"""
        with self._lock:
            data = self._read_log()
            data["completed_at"] = self._now()

            if "started_at" in data:
                try:
                    start = datetime.fromisoformat(data["started_at"])
                    end = datetime.now(timezone.utc)
                    data["total_duration_ms"] = int((end - start).total_seconds() * 1000)
                except ValueError:
                    pass

            with open(self.log_file, 'w') as f:
                json.dump(data, f, indent=2, default=str)

    def get_logs(self) -> Dict[str, Any]:
        """Get all logs for this session"""
        return self._read_log()
