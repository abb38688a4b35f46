"""Editable import preview owned by one import"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from .revalidator import PreviewRevalidator
from .sanitizer import sanitize_for_db
from .types import (
    BatchSummary,
    CommitError,
    NormalizedQuestion,
    NothingToCommitError,
    SessionCommittedError,
)

logger = logging.getLogger(__name__)


class ImportSession:
    """
    Preview rows of one upload, held in memory until commit.

    Rows are addressed by their current position in the preview. Deleting a
    row shifts later positions but never rewrites a row's stored row_index,
    so display row numbers keep pointing at the source file.
    """

    def __init__(
        self,
        session_id: str,
        exam_id: Any,
        filename: str,
        source: str,
        rows: List[NormalizedQuestion],
        warnings: Optional[List[str]] = None
    ):
        self.session_id = session_id
        self.exam_id = exam_id
        self.filename = filename
        self.source = source
        self.rows = rows
        self.warnings = warnings or []
        self.committed = False
        self.committing = False
        self.created_at = datetime.now()

    def get_row(self, position: int) -> NormalizedQuestion:
        if position < 0 or position >= len(self.rows):
            raise IndexError(f"No preview row at position {position}")
        return self.rows[position]

    def edit_row(self, position: int, field: str, value: Any) -> NormalizedQuestion:
        self._ensure_open()
        row = self.get_row(position)
        return PreviewRevalidator.apply_edit(row, field, value)

    def delete_row(self, position: int) -> NormalizedQuestion:
        self._ensure_open()
        row = self.get_row(position)
        del self.rows[position]
        logger.info(f"Removed row {row.display_row} from import {self.session_id}")
        return row

    def acceptable_rows(self) -> List[NormalizedQuestion]:
        return [row for row in self.rows if row.is_acceptable]

    def rejected_rows(self) -> List[NormalizedQuestion]:
        return [row for row in self.rows if not row.is_acceptable]

    def summary(self) -> BatchSummary:
        return BatchSummary.from_rows(self.rows)

    async def commit(self, store) -> Dict[str, int]:
        """
        Hand the acceptable rows to the store in one insert.

        Rejected rows are skipped and logged. A store failure leaves the
        session open so the operator can retry. Only one commit may be in
        flight; a second caller is rejected while the first awaits the store.
        """
        self._ensure_open()

        accepted = self.acceptable_rows()
        rejected = self.rejected_rows()

        if not accepted:
            raise NothingToCommitError("No valid questions to upload. Please fix or remove invalid rows.")

        if rejected:
            logger.info(
                f"Skipping {len(rejected)} invalid rows: "
                + "; ".join(row.validation_log for row in rejected)
            )

        records = sanitize_for_db(accepted)
        self.committing = True
        try:
            inserted = await store.insert_questions(records)
        except Exception as e:
            logger.error(f"Commit failed for import {self.session_id}: {e}")
            raise CommitError(f"Upload failed: {e}") from e
        finally:
            self.committing = False

        self.committed = True
        logger.info(f"Committed {inserted} questions for exam {self.exam_id} from {self.filename}")
        return {"inserted": inserted, "skipped": len(rejected)}

    def _ensure_open(self):
        if self.committed:
            raise SessionCommittedError(f"Import {self.session_id} has already been committed")
        if self.committing:
            raise SessionCommittedError(f"Import {self.session_id} is being committed")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "session_id": self.session_id,
            "exam_id": self.exam_id,
            "filename": self.filename,
            "source": self.source,
            "committed": self.committed,
            "created_at": self.created_at.isoformat(),
            "warnings": list(self.warnings),
            "summary": self.summary().to_dict(),
            "rows": [row.to_dict() for row in self.rows]
        }
