# backend/app/services/question_import/header_resolver.py

"""Column header classification and logical field mapping"""

import re
import logging
from typing import Dict, List, Tuple

from .text_normalizer import TextNormalizer
from .types import (
    FieldMapping,
    HeaderMapping,
    HeaderValidation,
    LOGICAL_FIELDS,
    SUPPORTED_LANGUAGES,
)

logger = logging.getLogger(__name__)

BILINGUAL_PATTERN = re.compile(r"^(.+?)_(" + "|".join(SUPPORTED_LANGUAGES) + r")$", re.IGNORECASE)

# Expected bilingual base names, tried in order
BILINGUAL_BASES: Dict[str, List[str]] = {
    "question": ["question"],
    "option_a": ["optiona", "option_a"],
    "option_b": ["optionb", "option_b"],
    "option_c": ["optionc", "option_c"],
    "option_d": ["optiond", "option_d"],
}


def _option_aliases(letter: str, number: int) -> List[str]:
    return [
        f"option_{letter}", f"option {letter}", f"option{letter}", letter,
        f"opt_{letter}", f"opt {letter}", f"option{number}", f"option_{number}",
        f"answer_{letter}",
    ]


# Accepted single-column aliases in priority order
SINGLE_ALIASES: Dict[str, List[str]] = {
    "question": ["question", "question_text", "q", "question_title"],
    "option_a": _option_aliases("a", 1),
    "option_b": _option_aliases("b", 2),
    "option_c": _option_aliases("c", 3),
    "option_d": _option_aliases("d", 4),
    "answer": [
        "correct_answer", "correct answer", "correct", "answer",
        "correct_option", "correctoption", "ans", "right_answer",
    ],
}

FIELD_LABELS = {
    "question": "Question",
    "option_a": "Option A",
    "option_b": "Option B",
    "option_c": "Option C",
    "option_d": "Option D",
    "answer": "Answer",
}

MANDATORY_FIELDS = ("question", "option_a", "option_b", "option_c", "option_d")


class HeaderResolver:
    """Maps a batch's raw headers onto the six logical question fields"""

    @staticmethod
    def group_headers(headers: List[str]) -> Tuple[Dict[str, Dict[str, str]], Dict[str, str]]:
        """
        Split headers into bilingual groups and single columns.

        Returns:
            Tuple of (bilingual: base -> {lang: normalized}, single: normalized -> raw)
        """
        bilingual: Dict[str, Dict[str, str]] = {}
        single: Dict[str, str] = {}

        for header in headers:
            normalized = TextNormalizer.normalize_header(header)
            match = BILINGUAL_PATTERN.match(normalized)
            if match:
                base, lang = match.group(1), match.group(2)
                bilingual.setdefault(base, {})[lang] = normalized
            else:
                single[normalized] = header

        return bilingual, single

    def resolve(self, headers: List[str]) -> HeaderValidation:
        """
        Build the header mapping for one import batch.

        Bilingual groups win over single columns. Every mandatory field must
        resolve; otherwise the batch is rejected with one diagnostic per
        missing field and no mapping.
        """
        bilingual, single = self.group_headers(headers)
        warnings: List[str] = []
        missing: List[str] = []
        fields: Dict[str, FieldMapping] = {}

        for field in LOGICAL_FIELDS:
            mapping = self._resolve_field(field, bilingual, single)

            if mapping.bilingual:
                languages = ", ".join(
                    lang for lang in SUPPORTED_LANGUAGES if lang in mapping.per_language
                )
                warnings.append(
                    f"Detected bilingual {FIELD_LABELS[field]} columns: {languages}"
                )
            elif mapping.is_empty() and field in MANDATORY_FIELDS:
                missing.append(field)

            fields[field] = mapping

        if missing:
            for field in missing:
                warnings.append(f"No {FIELD_LABELS[field]} column found")
            logger.warning(f"Header validation failed, missing: {', '.join(missing)}")
            return HeaderValidation(valid=False, mapped_headers=None, warnings=warnings)

        if fields["answer"].is_empty():
            logger.info("No answer column found; every row will need a manual answer")

        return HeaderValidation(valid=True, mapped_headers=HeaderMapping(fields), warnings=warnings)

    @staticmethod
    def _resolve_field(
        field: str,
        bilingual: Dict[str, Dict[str, str]],
        single: Dict[str, str]
    ) -> FieldMapping:
        for base in BILINGUAL_BASES.get(field, []):
            if base in bilingual:
                return FieldMapping.for_languages(base, bilingual[base])

        present = [alias for alias in SINGLE_ALIASES[field] if alias in single]
        return FieldMapping.for_candidates(present)
