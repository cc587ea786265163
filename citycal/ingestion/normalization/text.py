"""Text helpers shared by venue matching and tag canonicalization."""

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def strip_diacritics(text: str) -> str:
    """Remove combining marks after NFD decomposition ("Frágil" -> "Fragil")."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(name: str) -> str:
    """
    Lowercase, diacritic-free, hyphen-separated form of a name.

    Runs of non-alphanumeric characters collapse to a single hyphen and
    leading/trailing hyphens are trimmed: "Lux Frágil" -> "lux-fragil",
    "B.Leza" -> "b-leza".
    """
    if not name:
        return ""
    return _NON_ALNUM.sub("-", strip_diacritics(name.lower())).strip("-")


def collapse_whitespace(text: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", (text or "").strip().lower())


def normalize_handle(handle: str) -> str:
    """Lowercase a social handle and drop a leading '@'."""
    text = (handle or "").strip().lower()
    return text[1:] if text.startswith("@") else text


def strip_dots(handle: str) -> str:
    """Handle variant without dots ("clube_b.leza" -> "clube_bleza")."""
    return (handle or "").replace(".", "")
