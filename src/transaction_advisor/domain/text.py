import re
import unicodedata

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(text: str) -> str:
    """Lowercase and strip diacritics. Punctuation is kept for keyword matching."""
    return _strip_accents(text or "").strip()


def normalize_description(text: str) -> str:
    """Lowercase, strip diacritics and punctuation, collapse whitespace."""
    stripped = _PUNCTUATION.sub(" ", _strip_accents(text or ""))
    return _WHITESPACE.sub(" ", stripped).strip()


def significant_words(text: str, min_length: int = 3) -> set[str]:
    return {word for word in text.split() if len(word) >= min_length}
