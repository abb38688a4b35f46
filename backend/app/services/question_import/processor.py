"""Main question import orchestrator"""

import logging
import uuid
from datetime import datetime, timedelta
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from app.core.config import settings
from .batch import BatchPipeline
from .extraction import get_question_extractor
from .file_parser import FileParser, TABULAR_TYPES, detect_file_type
from .header_resolver import HeaderResolver
from .session import ImportSession
from .types import FileParseError, HeaderValidationError

logger = logging.getLogger(__name__)

# Keys the document extractor is asked to produce
CANONICAL_HEADERS = ["question", "option_a", "option_b", "option_c", "option_d", "correct_option"]

NO_QUESTIONS_WARNING = "No questions found in file."


class QuestionImportProcessor:
    """Turns uploads into import sessions and keeps them until commit or discard"""

    def __init__(self, file_parser: FileParser = None, extractor=None):
        self.active_sessions: Dict[str, ImportSession] = {}
        self.file_parser = file_parser or FileParser()
        self.header_resolver = HeaderResolver()
        self.batch_pipeline = BatchPipeline()
        self._extractor = extractor

    @property
    def extractor(self):
        if self._extractor is None:
            self._extractor = get_question_extractor()
        return self._extractor

    async def process_upload(self, content: bytes, filename: str, exam_id: Any) -> ImportSession:
        """
        Parse an upload and build its editable preview.

        Raises:
            UnsupportedFileTypeError: unknown extension
            FileParseError: empty, oversized or unreadable content
            HeaderValidationError: a mandatory column is missing
            ExtractionError: the document extractor returned unusable output
        """
        file_type = detect_file_type(filename)

        if not content:
            raise FileParseError("File is empty")
        if len(content) > settings.MAX_FILE_SIZE:
            raise FileParseError(
                f"File exceeds the maximum upload size of {settings.MAX_FILE_SIZE} bytes"
            )

        logger.info(f"Processing {file_type} upload {filename} ({len(content)} bytes) for exam {exam_id}")

        if file_type in TABULAR_TYPES:
            parsed = self.file_parser.parse_tabular(content, file_type)
            headers, records, source = parsed.headers, parsed.records, "tabular"
        else:
            text = self.file_parser.extract_document_text(content, file_type)
            records = await self.extractor.extract(text)
            headers, source = self.document_headers(records), "document"

        session = self.build_session(records, headers, exam_id, filename, source)
        self.register_session(session)
        return session

    def build_session(
        self,
        records: List[Any],
        headers: List[str],
        exam_id: Any,
        filename: str,
        source: str
    ) -> ImportSession:
        validation = self.header_resolver.resolve(headers)
        if not validation.valid:
            raise HeaderValidationError(validation.warnings, headers)

        for warning in validation.warnings:
            logger.info(f"Header note for {filename}: {warning}")

        result = self.batch_pipeline.run(records, exam_id, validation.mapped_headers)

        warnings = list(validation.warnings)
        if not result.rows:
            warnings.append(NO_QUESTIONS_WARNING)

        return ImportSession(
            session_id=str(uuid.uuid4()),
            exam_id=exam_id,
            filename=filename,
            source=source,
            rows=result.rows,
            warnings=warnings
        )

    @staticmethod
    def document_headers(records: List[Any]) -> List[str]:
        """Canonical keys plus any other keys the extracted records carry."""
        headers = list(CANONICAL_HEADERS)
        seen = set(headers)
        for record in records:
            if not isinstance(record, Mapping):
                continue
            for key in record.keys():
                key = str(key)
                if key.lower().strip() not in seen:
                    seen.add(key.lower().strip())
                    headers.append(key)
        return headers

    def register_session(self, session: ImportSession):
        """Keep a new preview, evicting the oldest ones beyond MAX_ACTIVE_IMPORTS"""
        self.prune_expired_sessions()
        while self.active_sessions and len(self.active_sessions) >= settings.MAX_ACTIVE_IMPORTS:
            oldest = min(self.active_sessions.values(), key=lambda s: s.created_at)
            logger.warning(f"Evicting import {oldest.session_id} ({oldest.filename}): too many open imports")
            del self.active_sessions[oldest.session_id]
        self.active_sessions[session.session_id] = session

    def prune_expired_sessions(self, now: Optional[datetime] = None) -> int:
        """Drop previews older than IMPORT_SESSION_TTL_MINUTES"""
        cutoff = (now or datetime.now()) - timedelta(minutes=settings.IMPORT_SESSION_TTL_MINUTES)
        expired = [
            session_id for session_id, session in self.active_sessions.items()
            if session.created_at < cutoff
        ]
        for session_id in expired:
            del self.active_sessions[session_id]
        if expired:
            logger.info(f"Expired {len(expired)} abandoned imports")
        return len(expired)

    def get_session(self, session_id: str) -> Optional[ImportSession]:
        self.prune_expired_sessions()
        return self.active_sessions.get(session_id)

    def discard_session(self, session_id: str) -> bool:
        """Drop a preview; nothing has been persisted so nothing is undone"""
        return self.active_sessions.pop(session_id, None) is not None

    def get_all_sessions(self) -> List[ImportSession]:
        return list(self.active_sessions.values())
