import re

LIKE_ESCAPE = "\\"
_LIKE_SPECIAL = re.compile(r"([\\%_])")


def like_pattern(term: str) -> str:
    """
    Build a "contains" pattern for ILIKE
    - Escape \\, % and _ so user input is matched literally (use escape=LIKE_ESCAPE)
    - Collapse inner whitespace
    """
    cleaned = " ".join((term or "").split())
    escaped = _LIKE_SPECIAL.sub(r"\\\1", cleaned)
    return f"%{escaped}%"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()
