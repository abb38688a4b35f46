# backend/app/services/question_import/file_parser.py

"""Upload parsing: tabular files to records, documents to text"""

import csv
import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import mammoth
import numpy as np
import pandas as pd
import pymupdf

from .text_normalizer import TextNormalizer
from .types import FileParseError, MalformedRecord, TabularParseResult, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

FILE_TYPES = {
    ".csv": "csv",
    ".xlsx": "excel",
    ".pdf": "pdf",
    ".docx": "word",
}

TABULAR_TYPES = ("csv", "excel")
DOCUMENT_TYPES = ("pdf", "word")


def detect_file_type(filename: str) -> str:
    """Classify an upload by its extension."""
    suffix = Path(filename or "").suffix.lower()
    file_type = FILE_TYPES.get(suffix)
    if file_type is None:
        raise UnsupportedFileTypeError(
            f"Unsupported file type '{suffix or filename}'. Please use .csv, .xlsx, .pdf, or .docx"
        )
    return file_type


class FileParser:
    """Turns uploaded bytes into records or plain text"""

    def parse_tabular(self, content: bytes, file_type: str) -> TabularParseResult:
        malformed: Dict[int, str] = {}
        if file_type == "csv":
            df, malformed = self._read_csv(content)
        elif file_type == "excel":
            df = self._read_excel(content)
        else:
            raise UnsupportedFileTypeError(f"'{file_type}' is not a tabular format")

        headers = [str(column) for column in df.columns]
        df.columns = headers
        records: List[Any] = [self._convert_numpy_types(record) for record in df.to_dict(orient="records")]
        for position, detail in malformed.items():
            records[position] = MalformedRecord(detail)

        logger.info(
            f"Parsed {file_type} file: {len(headers)} columns, {len(records)} rows"
            + (f" ({len(malformed)} malformed)" if malformed else "")
        )
        return TabularParseResult(headers=headers, records=records)

    def extract_document_text(self, content: bytes, file_type: str) -> str:
        if file_type == "pdf":
            return self._extract_pdf_text(content)
        if file_type == "word":
            return self._extract_docx_text(content)
        raise UnsupportedFileTypeError(f"'{file_type}' is not a document format")

    def _read_csv(self, content: bytes) -> Tuple[pd.DataFrame, Dict[int, str]]:
        """
        Read a CSV into a text-only frame.

        Blank lines are skipped. Empty trailing cells beyond the header width
        are dropped, so rows ending in a delimiter keep their columns. A row
        that is still wider than the header keeps its place as an empty row
        and is reported in the returned {position: detail} map.
        """
        try:
            text = TextNormalizer.strip_bom(content.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise FileParseError(f"CSV file is not valid UTF-8: {e}") from e

        if not text.strip():
            raise FileParseError("CSV file is empty")

        reader = csv.reader(io.StringIO(text))
        headers: Optional[List[str]] = None
        rows: List[List[str]] = []
        malformed: Dict[int, str] = {}

        try:
            for fields in reader:
                if not any(field.strip() for field in fields):
                    continue
                if headers is None:
                    headers = self._unique_headers(self._trim_trailing_empty(fields, 0))
                    continue

                width = len(headers)
                fields = self._trim_trailing_empty(fields, width)
                if len(fields) > width:
                    detail = f"line {reader.line_num} has {len(fields)} fields, expected {width}"
                    logger.warning(f"CSV {detail}")
                    malformed[len(rows)] = detail
                    fields = []
                rows.append(fields + [""] * (width - len(fields)))
        except csv.Error as e:
            raise FileParseError(f"Failed to parse CSV: {e}") from e

        if not headers:
            raise FileParseError("CSV file has no header row")

        return pd.DataFrame(rows, columns=headers, dtype=object), malformed

    @staticmethod
    def _trim_trailing_empty(fields: List[str], width: int) -> List[str]:
        fields = list(fields)
        while len(fields) > width and not fields[-1].strip():
            fields.pop()
        return fields

    @staticmethod
    def _unique_headers(fields: List[str]) -> List[str]:
        """Suffix repeated names the way pandas does: a, a.1, a.2"""
        seen: Dict[str, int] = {}
        headers = []
        for name in fields:
            count = seen.get(name, 0)
            headers.append(name if count == 0 else f"{name}.{count}")
            seen[name] = count + 1
        return headers

    def _read_excel(self, content: bytes) -> pd.DataFrame:
        try:
            df = pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=object)
        except Exception as e:
            raise FileParseError(f"Failed to read Excel workbook: {e}") from e

        # Empty cells read as NaN; rows with no value at all are dropped
        df = df.dropna(how="all")
        return df.astype(object).where(df.notna(), "")

    def _extract_pdf_text(self, content: bytes) -> str:
        try:
            with pymupdf.open(stream=content, filetype="pdf") as document:
                pages = [page.get_text() for page in document]
        except Exception as e:
            raise FileParseError(f"PDF extraction failed: {e}") from e

        logger.info(f"Extracted text from {len(pages)} PDF pages")
        return "\n".join(pages)

    def _extract_docx_text(self, content: bytes) -> str:
        try:
            result = mammoth.extract_raw_text(io.BytesIO(content))
        except Exception as e:
            raise FileParseError(f"Word extraction failed: {e}") from e

        for message in result.messages:
            logger.debug(f"mammoth: {message}")
        return result.value

    def _convert_numpy_types(self, obj: Any) -> Any:
        """Convert numpy types to Python native types"""
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, dict):
            return {key: self._convert_numpy_types(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._convert_numpy_types(item) for item in obj]
        else:
            return obj
