"""Type definitions for question import"""

from enum import Enum
from typing import Dict, List, Optional, Any

OPTION_LETTERS = ("A", "B", "C", "D")
OPTION_FIELDS = ("option_a", "option_b", "option_c", "option_d")
TEXT_FIELDS = ("question",) + OPTION_FIELDS
LOGICAL_FIELDS = TEXT_FIELDS + ("answer",)

# English first, then the rest in a fixed order
SUPPORTED_LANGUAGES = ("en", "te", "hi", "ta", "ml", "kn", "gu", "mr", "bn", "pa", "ur", "as", "ks")

BILINGUAL_SEPARATOR = "<br/>"


class RowError(str, Enum):
    """Closed vocabulary of per-row validity violations"""

    MISSING_QUESTION = "Missing Question"
    MISSING_OPTIONS = "Missing Options"
    INVALID_ANSWER = "Invalid Answer"
    MALFORMED_ROW = "Malformed Row"


class FieldMapping:
    """How one logical field is read from a record"""

    def __init__(
        self,
        bilingual: bool,
        base: Optional[str] = None,
        per_language: Optional[Dict[str, str]] = None,
        candidates: Optional[List[str]] = None
    ):
        self.bilingual = bilingual
        self.base = base
        self.per_language = per_language or {}
        self.candidates = candidates or []

    @classmethod
    def for_languages(cls, base: str, per_language: Dict[str, str]) -> "FieldMapping":
        return cls(bilingual=True, base=base, per_language=dict(per_language))

    @classmethod
    def for_candidates(cls, candidates: List[str]) -> "FieldMapping":
        return cls(bilingual=False, candidates=list(candidates))

    def is_empty(self) -> bool:
        if self.bilingual:
            return not self.per_language
        return not self.candidates

    def to_dict(self) -> Dict[str, Any]:
        if self.bilingual:
            return {"bilingual": True, "base": self.base, "per_language": dict(self.per_language)}
        return {"bilingual": False, "candidates": list(self.candidates)}


class HeaderMapping:
    """Field mappings for the six logical fields of one import batch"""

    def __init__(self, fields: Dict[str, FieldMapping]):
        self.fields = fields

    def __getitem__(self, field: str) -> FieldMapping:
        return self.fields[field]

    def get(self, field: str) -> Optional[FieldMapping]:
        return self.fields.get(field)

    def to_dict(self) -> Dict[str, Any]:
        return {field: mapping.to_dict() for field, mapping in self.fields.items()}


class HeaderValidation:
    """Header resolution result"""

    def __init__(self, valid: bool, mapped_headers: Optional[HeaderMapping], warnings: List[str]):
        self.valid = valid
        self.mapped_headers = mapped_headers
        self.warnings = warnings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "mapped_headers": self.mapped_headers.to_dict() if self.mapped_headers else None,
            "warnings": list(self.warnings)
        }


class AnswerResolution:
    """Resolved answer: canonical letter and zero-based index"""

    def __init__(self, letter: str = "", index: int = -1):
        self.letter = letter
        self.index = index

    @property
    def is_valid(self) -> bool:
        return 0 <= self.index <= 3

    def __eq__(self, other):
        if not isinstance(other, AnswerResolution):
            return NotImplemented
        return (self.letter, self.index) == (other.letter, other.index)

    def __repr__(self):
        return f"AnswerResolution(letter={self.letter!r}, index={self.index})"


class NormalizedQuestion:
    """Canonical output unit of the import pipeline"""

    def __init__(
        self,
        row_index: int,
        exam_id: Any,
        question: Optional[str] = "",
        option_a: Optional[str] = "",
        option_b: Optional[str] = "",
        option_c: Optional[str] = "",
        option_d: Optional[str] = "",
        correct_option: Optional[str] = "",
        correct_index: int = -1,
        errors: Optional[List[RowError]] = None,
        validation_log: str = ""
    ):
        self.row_index = row_index
        self.exam_id = exam_id
        self.question = question
        self.option_a = option_a
        self.option_b = option_b
        self.option_c = option_c
        self.option_d = option_d
        self.correct_option = correct_option
        self.correct_index = correct_index
        self.errors = errors or []
        self.validation_log = validation_log

    @classmethod
    def malformed(cls, row_index: int, exam_id: Any, detail: Optional[str] = None) -> "NormalizedQuestion":
        """All-empty row for input that could not be read as a record"""
        log = f"Row {row_index + 2}: {RowError.MALFORMED_ROW.value}"
        if detail:
            log += f" - {detail}"
        return cls(
            row_index=row_index,
            exam_id=exam_id,
            errors=[RowError.MALFORMED_ROW],
            validation_log=log
        )

    @property
    def options(self) -> List[Optional[str]]:
        return [self.option_a, self.option_b, self.option_c, self.option_d]

    @property
    def display_row(self) -> int:
        return self.row_index + 2

    @property
    def is_acceptable(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "row_index": self.row_index,
            "exam_id": self.exam_id,
            "question": self.question,
            "option_a": self.option_a,
            "option_b": self.option_b,
            "option_c": self.option_c,
            "option_d": self.option_d,
            "correct_option": self.correct_option,
            "correct_index": self.correct_index,
            "errors": [error.value for error in self.errors],
            "validation_log": self.validation_log
        }


class BatchSummary:
    """Validity summary of one processed batch"""

    def __init__(self, total_rows: int, valid_count: int, invalid_count: int, validation_logs: List[str]):
        self.total_rows = total_rows
        self.valid_count = valid_count
        self.invalid_count = invalid_count
        self.validation_logs = validation_logs

    @classmethod
    def from_rows(cls, rows: List[NormalizedQuestion]) -> "BatchSummary":
        valid_count = sum(1 for row in rows if row.is_acceptable)
        return cls(
            total_rows=len(rows),
            valid_count=valid_count,
            invalid_count=len(rows) - valid_count,
            validation_logs=[row.validation_log for row in rows]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "valid_count": self.valid_count,
            "invalid_count": self.invalid_count,
            "validation_logs": list(self.validation_logs)
        }


class BatchResult:
    """Ordered rows of a batch plus its summary"""

    def __init__(self, rows: List[NormalizedQuestion], summary: BatchSummary):
        self.rows = rows
        self.summary = summary

    @property
    def valid_rows(self) -> List[NormalizedQuestion]:
        return [row for row in self.rows if row.is_acceptable]

    @property
    def invalid_rows(self) -> List[NormalizedQuestion]:
        return [row for row in self.rows if not row.is_acceptable]


class MalformedRecord:
    """Placeholder for a source line that could not be split into the header's columns"""

    def __init__(self, detail: str):
        self.detail = detail

    def __repr__(self):
        return f"MalformedRecord({self.detail!r})"


class TabularParseResult:
    """Headers and records produced by a delimited-text or sheet parser"""

    def __init__(self, headers: List[str], records: List[Any]):
        self.headers = headers
        self.records = records


# Exceptions

class QuestionImportError(Exception):
    """Base class for import failures surfaced to the caller"""


class UnsupportedFileTypeError(QuestionImportError):
    pass


class FileParseError(QuestionImportError):
    pass


class ExtractionError(QuestionImportError):
    pass


class HeaderValidationError(QuestionImportError):
    """Header set cannot satisfy the mandatory fields; no rows were processed"""

    def __init__(self, warnings: List[str], headers: List[str]):
        self.warnings = warnings
        self.headers = headers
        super().__init__("Header validation failed: " + "; ".join(warnings))


class NothingToCommitError(QuestionImportError):
    pass


class SessionCommittedError(QuestionImportError):
    pass


class CommitError(QuestionImportError):
    pass
