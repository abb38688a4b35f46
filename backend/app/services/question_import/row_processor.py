"""Single record normalization and validity diagnosis"""

import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence

from .answer_parser import AnswerParser
from .text_normalizer import TextNormalizer
from .types import (
    BILINGUAL_SEPARATOR,
    FieldMapping,
    HeaderMapping,
    MalformedRecord,
    NormalizedQuestion,
    RowError,
    SUPPORTED_LANGUAGES,
    TEXT_FIELDS,
)

logger = logging.getLogger(__name__)


def clean_value(value: Any) -> str:
    """Trimmed text of a cell; None and NaN read as empty."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def diagnose(question: Optional[str], options: Sequence[Optional[str]], correct_index: int) -> List[RowError]:
    """
    Validity rules shared by batch processing and preview edits.

    Text counts as missing when it is None or blank.
    """
    errors: List[RowError] = []
    if not clean_value(question):
        errors.append(RowError.MISSING_QUESTION)
    if any(not clean_value(option) for option in options):
        errors.append(RowError.MISSING_OPTIONS)
    if not 0 <= correct_index <= 3:
        errors.append(RowError.INVALID_ANSWER)
    return errors


def compose_validation_log(row_index: int, errors: List[RowError]) -> str:
    if not errors:
        return f"Row {row_index + 2}: Valid"
    return f"Row {row_index + 2}: " + ", ".join(error.value for error in errors)


class RowProcessor:
    """Turns one raw record into a NormalizedQuestion"""

    def __init__(self):
        self.answer_parser = AnswerParser()

    def process_row(
        self,
        record: Any,
        row_index: int,
        exam_id: Any,
        mapping: HeaderMapping
    ) -> NormalizedQuestion:
        """
        Normalize a record and diagnose it.

        Never raises: a record that is not a mapping, or one that fails
        during extraction, comes back as the all-empty Malformed Row shape.
        """
        if isinstance(record, MalformedRecord):
            return NormalizedQuestion.malformed(row_index, exam_id, detail=record.detail)
        if record is None or not isinstance(record, Mapping):
            return NormalizedQuestion.malformed(row_index, exam_id)

        try:
            return self._process_mapping(record, row_index, exam_id, mapping)
        except Exception as e:
            logger.warning(f"Row {row_index + 2} processing failed: {e}")
            return NormalizedQuestion.malformed(row_index, exam_id, detail=str(e))

    def _process_mapping(
        self,
        record: Mapping,
        row_index: int,
        exam_id: Any,
        mapping: HeaderMapping
    ) -> NormalizedQuestion:
        normalized_record = {
            TextNormalizer.normalize_header(key): value for key, value in record.items()
        }

        values = {
            field: self.extract_field(mapping[field], normalized_record) for field in TEXT_FIELDS
        }
        options = [values["option_a"], values["option_b"], values["option_c"], values["option_d"]]

        answer_mapping = mapping.get("answer")
        answer_raw = self.find_value(answer_mapping.candidates, normalized_record) if answer_mapping else ""
        answer = self.answer_parser.resolve_answer(answer_raw, options)

        errors = diagnose(values["question"], options, answer.index)

        return NormalizedQuestion(
            row_index=row_index,
            exam_id=exam_id,
            question=values["question"],
            option_a=values["option_a"],
            option_b=values["option_b"],
            option_c=values["option_c"],
            option_d=values["option_d"],
            correct_option=answer.letter,
            correct_index=answer.index,
            errors=errors,
            validation_log=compose_validation_log(row_index, errors)
        )

    def extract_field(self, field_mapping: FieldMapping, normalized_record: Dict[str, Any]) -> str:
        if field_mapping.bilingual:
            return self.merge_languages(field_mapping.per_language, normalized_record)
        return self.find_value(field_mapping.candidates, normalized_record)

    @staticmethod
    def merge_languages(per_language: Dict[str, str], normalized_record: Dict[str, Any]) -> str:
        """Join the non-blank per-language values, English first."""
        parts = []
        for lang in SUPPORTED_LANGUAGES:
            header = per_language.get(lang)
            if header is None:
                continue
            value = clean_value(normalized_record.get(header))
            if value:
                parts.append(value)
        return BILINGUAL_SEPARATOR.join(parts)

    @staticmethod
    def find_value(candidates: List[str], normalized_record: Dict[str, Any]) -> str:
        """First non-blank value among the candidate headers, in order."""
        for candidate in candidates:
            value = clean_value(normalized_record.get(candidate))
            if value:
                return value
        return ""
