"""Header and raw text normalization"""

from typing import Any

BOM = "\ufeff"


class TextNormalizer:
    """Leaf helpers shared by header resolution and row processing"""

    @staticmethod
    def normalize_header(raw: Any) -> str:
        """Lowercase and trim a header so lookups ignore case and padding."""
        if raw is None:
            return ""
        return str(raw).lower().strip()

    @staticmethod
    def strip_bom(text: str) -> str:
        """
        Remove a leading byte-order mark.

        Spreadsheet tools often save CSV as UTF-8-SIG; without this the first
        header would read as "\\ufeffquestion" and never match an alias.
        """
        if isinstance(text, str) and text[:1] == BOM:
            return text[1:]
        return text
