"""Preparation of accepted rows for persistence"""

from collections.abc import Mapping
from typing import Any, Dict, Iterable, List

# Columns of the questions table written on commit
DB_FIELDS = ("exam_id", "question", "option_a", "option_b", "option_c", "option_d", "correct_option")


def sanitize_for_db(rows: Iterable[Any]) -> List[Dict[str, str]]:
    """
    Build one insert record per row with exactly the DB_FIELDS keys.

    Accepts NormalizedQuestion instances or plain mappings. Other keys are
    dropped; missing or None values become empty strings.
    """
    sanitized = []
    for row in rows:
        data = row if isinstance(row, Mapping) else row.to_dict()
        sanitized.append({
            key: "" if data.get(key) is None else str(data.get(key))
            for key in DB_FIELDS
        })
    return sanitized
