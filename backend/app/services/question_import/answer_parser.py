"""Correct-answer resolution"""

import math
from typing import Any, Optional, Sequence

from .types import AnswerResolution, OPTION_LETTERS


class AnswerParser:
    """
    Resolves a raw "correct answer" cell to a canonical option.

    Accepted conventions, first match wins:
    1. a letter A-D (any case)
    2. a numeral 1-4
    3. the exact text of one of the options (case-insensitive)

    The order matters on ambiguous input, e.g. an option whose text is
    literally "A" or "2".
    """

    @staticmethod
    def resolve_answer(raw: Any, options: Optional[Sequence[Any]] = None) -> AnswerResolution:
        if raw is None or (isinstance(raw, float) and math.isnan(raw)):
            return AnswerResolution()

        value = str(raw).strip()
        if not value:
            return AnswerResolution()

        upper = value.upper()
        if upper in OPTION_LETTERS:
            return AnswerResolution(upper, OPTION_LETTERS.index(upper))

        number = AnswerParser._parse_option_number(value)
        if number is not None:
            return AnswerResolution(OPTION_LETTERS[number - 1], number - 1)

        if options is not None:
            lowered = value.lower()
            for index, option in enumerate(list(options)[:len(OPTION_LETTERS)]):
                if option is None:
                    continue
                if str(option).strip().lower() == lowered:
                    return AnswerResolution(OPTION_LETTERS[index], index)

        return AnswerResolution()

    @staticmethod
    def _parse_option_number(value: str) -> Optional[int]:
        """Integer 1-4, also accepting spreadsheet renderings such as "2.0"."""
        try:
            number = int(value)
        except ValueError:
            try:
                as_float = float(value)
            except ValueError:
                return None
            if not as_float.is_integer():
                return None
            number = int(as_float)

        if 1 <= number <= 4:
            return number
        return None

    @staticmethod
    def letter_index(letter: Any) -> int:
        """Index of a canonical letter, -1 when the value is not one of A-D."""
        if letter is None:
            return -1
        value = str(letter).strip().upper()
        if value in OPTION_LETTERS:
            return OPTION_LETTERS.index(value)
        return -1
