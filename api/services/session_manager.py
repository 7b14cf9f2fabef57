"""
Session manager - owns per-user analysis state and runs exchanges

Each AnalysisSession holds exactly one dataset and one conversation log.
At most one exchange is in flight per session; the busy flag is set and
cleared on the event loop thread, so no lock is needed. Session log
writes run in worker threads and never fail an exchange.
"""
import asyncio
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from src.stage1_ingest import Dataset, TabularParser
from src.stage2_analyst import (
    AnalysisResult,
    ConversationLog,
    DecodeError,
    Message,
    MessageRole,
    PromptBuilder,
    ResponseDecoder,
    ServiceError,
    SessionBusyError,
    ValidationError,
)
from src.stage2_analyst.exceptions import AnalystError
from src.stage2_analyst.response_decoder import extract_reply_text

from ..logging.structured_logger import SessionLogger

logger = logging.getLogger(__name__)

LOAD_NOTICE = 'File "{file_name}" loaded successfully. You can now ask questions about your data.'


@dataclass(frozen=True)
class ExchangeOutcome:
    """Result of one exchange: an analysis, or a failure kind with a user-facing detail"""
    ok: bool
    result: Optional[AnalysisResult] = None
    error_kind: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, result: AnalysisResult) -> "ExchangeOutcome":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, error: AnalystError) -> "ExchangeOutcome":
        return cls(ok=False, error_kind=error.kind, detail=error.user_message)


class AnalysisSession:
    """Dataset, conversation, and in-flight state for one user"""

    def __init__(
        self,
        session_id: str,
        client: Any,
        builder: Optional[PromptBuilder] = None,
        decoder: Optional[ResponseDecoder] = None,
        parser: Optional[TabularParser] = None,
        session_logger: Optional[SessionLogger] = None
    ):
        """
        Args:
            session_id: Unique session identifier
            client: Object with an async submit(PromptRequest) -> dict (an InferenceClient)
            builder: Prompt builder (default samples 10 rows)
            decoder: Reply decoder
            parser: CSV parser
            session_logger: Optional structured logger for this session
        """
        self.session_id = session_id
        self.client = client
        self.builder = builder or PromptBuilder()
        self.decoder = decoder or ResponseDecoder()
        self.parser = parser or TabularParser()
        self.session_logger = session_logger

        self.dataset: Dataset = Dataset.empty()
        self.file_name: Optional[str] = None
        self.conversation = ConversationLog()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def load_dataset(self, file_name: str, raw_text: str) -> Dataset:
        """
        Parse an upload and make it the session's dataset.

        The previous dataset and conversation are replaced, not merged.

        Raises:
            SessionBusyError while an exchange is in flight
            DuplicateColumnError if the header repeats a column
        """
        if self._busy:
            raise SessionBusyError("cannot replace dataset while an exchange is in flight")

        dataset = self.parser.parse(raw_text)

        self.dataset = dataset
        self.file_name = file_name
        self.conversation = ConversationLog()
        self.conversation.append(Message(
            role=MessageRole.SYSTEM_NOTICE,
            text=LOAD_NOTICE.format(file_name=file_name)
        ))

        logger.info(f"[{self.session_id}] Loaded {file_name}: {dataset.describe()}")
        return dataset

    async def upload(self, file_name: str, raw_text: str) -> Dataset:
        """load_dataset plus a session log entry for the upload"""
        dataset = self.load_dataset(file_name, raw_text)
        await self._write_log("record_dataset", file_name, dataset.row_count, dataset.column_count)
        return dataset

    async def ask(self, question: str) -> ExchangeOutcome:
        """
        Run one question -> inference -> decode -> log exchange.

        Validation, service, and decode failures come back as a failed
        ExchangeOutcome; the session stays usable either way.

        Raises:
            SessionBusyError if another exchange is still in flight
        """
        if self._busy:
            raise SessionBusyError("an exchange is already in flight")

        try:
            request = self.builder.build(question, self.dataset)
        except ValidationError as e:
            logger.warning(f"[{self.session_id}] Rejected question: {e}")
            return ExchangeOutcome.failure(e)

        self._busy = True
        exchange_id = uuid.uuid4().hex[:8]
        self.conversation.append(Message(role=MessageRole.USER, text=question))

        try:
            await self._write_log("exchange_start", exchange_id, question)
            start_time = time.time()
            raw = await self.client.submit(request)
            await self._record_llm_call(request.prompt, raw, int((time.time() - start_time) * 1000))
            result = self.decoder.decode(raw)
        except (ServiceError, DecodeError) as e:
            logger.error(f"[{self.session_id}] Exchange {exchange_id} failed ({e.kind}): {e}")
            metadata: Dict[str, Any] = {"error_kind": e.kind, "error": str(e)}
            if isinstance(e, DecodeError) and e.raw_text is not None:
                metadata["raw_text"] = e.raw_text[:SessionLogger.PREVIEW_CHARS]
            await self._write_log("exchange_end", exchange_id, success=False, metadata=metadata)
            return ExchangeOutcome.failure(e)
        finally:
            self._busy = False

        self.conversation.append(Message(
            role=MessageRole.ASSISTANT,
            text=result.analysis_text,
            chart_svg=result.chart_svg
        ))
        await self._write_log("exchange_end", exchange_id, metadata={"has_chart": result.has_chart})
        return ExchangeOutcome.success(result)

    async def _write_log(self, method: str, *args: Any, **kwargs: Any) -> None:
        """Run a SessionLogger call in a worker thread; a failed write never fails the exchange"""
        if not self.session_logger:
            return
        try:
            await asyncio.to_thread(getattr(self.session_logger, method), *args, **kwargs)
        except OSError as e:
            logger.warning(f"[{self.session_id}] Session log write failed ({method}): {e}")

    async def _record_llm_call(self, prompt: str, raw: Any, duration_ms: int) -> None:
        if not self.session_logger:
            return
        usage = raw.get("usageMetadata") if isinstance(raw, dict) else None
        if not isinstance(usage, dict):
            usage = {}
        await self._write_log(
            "llm_call",
            prompt_preview=prompt,
            response_preview=extract_reply_text(raw) or "",
            tokens={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
                "total_tokens": usage.get("totalTokenCount", 0),
            },
            duration_ms=duration_ms,
            model=getattr(self.client, "model", "unknown")
        )

    def close(self) -> None:
        if not self.session_logger:
            return
        try:
            self.session_logger.finalize()
        except OSError as e:
            logger.warning(f"[{self.session_id}] Could not finalize session log: {e}")


class SessionManager:
    """In-memory registry of analysis sessions"""

    def __init__(
        self,
        max_sessions: int = 100,
        logs_dir: Optional[str] = None,
        sample_rows: int = 10
    ):
        """
        Args:
            max_sessions: Oldest sessions are dropped beyond this many
            logs_dir: Directory for per-session JSON logs (None disables them)
            sample_rows: Rows embedded in each prompt
        """
        self.max_sessions = max_sessions
        self.logs_dir = logs_dir
        self.sample_rows = sample_rows
        self._sessions: "OrderedDict[str, AnalysisSession]" = OrderedDict()

    def create_session(self, client: Any) -> AnalysisSession:
        """Create a session bound to an inference client"""
        session_id = str(uuid.uuid4())
        session_logger = None
        if self.logs_dir:
            try:
                session_logger = SessionLogger(session_id, self.logs_dir)
            except OSError as e:
                logger.warning(f"Session log unavailable for {session_id}: {e}")
        session = AnalysisSession(
            session_id,
            client,
            builder=PromptBuilder(sample_rows=self.sample_rows),
            session_logger=session_logger
        )

        while len(self._sessions) >= self.max_sessions:
            old_id, old_session = self._sessions.popitem(last=False)
            old_session.close()
            logger.warning(f"Session limit reached, dropped oldest session {old_id}")

        self._sessions[session_id] = session
        logger.info(f"Created session {session_id}")
        return session

    def get_session(self, session_id: str) -> Optional[AnalysisSession]:
        return self._sessions.get(session_id)

    def remove_session(self, session_id: str) -> bool:
        """Drop a session and finalize its log"""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info(f"Removed session {session_id}")
        return True

    def count(self) -> int:
        return len(self._sessions)
