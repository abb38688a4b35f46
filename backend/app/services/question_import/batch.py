"""Batch processing of raw records"""

import logging
from typing import Any, Iterable, List

from .row_processor import RowProcessor
from .types import BatchResult, BatchSummary, HeaderMapping, NormalizedQuestion

logger = logging.getLogger(__name__)


class BatchPipeline:
    """Runs every record of an import through the row processor"""

    def __init__(self, row_processor: RowProcessor = None):
        self.row_processor = row_processor or RowProcessor()

    def run(self, records: Iterable[Any], exam_id: Any, mapping: HeaderMapping) -> BatchResult:
        """
        Process records in input order.

        One bad row never stops the batch; the row processor isolates its own
        failures and this loop catches anything that still escapes.
        """
        rows: List[NormalizedQuestion] = []

        for index, record in enumerate(records):
            try:
                row = self.row_processor.process_row(record, index, exam_id, mapping)
            except Exception as e:
                logger.error(f"Unexpected failure processing row {index + 2}: {e}")
                row = NormalizedQuestion.malformed(index, exam_id, detail=str(e))
            rows.append(row)

        summary = BatchSummary.from_rows(rows)
        logger.info(
            f"Processed {summary.total_rows} rows: "
            f"{summary.valid_count} valid, {summary.invalid_count} invalid"
        )
        return BatchResult(rows, summary)
