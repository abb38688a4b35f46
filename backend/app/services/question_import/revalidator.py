"""Re-validation of rows edited in the import preview"""

from typing import Any

from .answer_parser import AnswerParser
from .row_processor import compose_validation_log, diagnose
from .types import NormalizedQuestion, OPTION_LETTERS

EDITABLE_FIELDS = ("question", "option_a", "option_b", "option_c", "option_d", "correct_option")


class PreviewRevalidator:
    """Applies one field edit to a preview row and refreshes its diagnosis"""

    @staticmethod
    def apply_edit(row: NormalizedQuestion, field: str, value: Any) -> NormalizedQuestion:
        """
        Write ``value`` into ``field`` and recompute errors in place.

        The answer is checked against the letter set only, whether it was the
        edited field or not; the row's other fields are left untouched.
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field '{field}' is not editable")

        text = "" if value is None else str(value).strip()

        if field == "correct_option":
            letter = text.upper()
            row.correct_option = letter if letter in OPTION_LETTERS else text
        else:
            setattr(row, field, text)

        row.correct_index = AnswerParser.letter_index(row.correct_option)
        if row.correct_index >= 0:
            row.correct_option = OPTION_LETTERS[row.correct_index]

        row.errors = diagnose(row.question, row.options, row.correct_index)
        row.validation_log = compose_validation_log(row.row_index, row.errors)
        return row
