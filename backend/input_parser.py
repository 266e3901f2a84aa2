"""
Input normalization for names and TLD lists.

Accepts single words, "name.tld" strings and short phrases, and turns them
into the lowercase alnum-dash slug every channel resolver works on.
"""
import re
from dataclasses import dataclass
from typing import List, Optional

from errors import InputValidationError

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 63  # a single DNS label
MAX_RAW_INPUT_LENGTH = 200

DEFAULT_TLDS = [".com", ".co", ".io", ".net"]
EXTENDED_TLDS = [
    ".org", ".ai", ".app", ".dev", ".gg",
    ".me", ".xyz", ".store", ".shop", ".online",
]

# Extensions recognised at the end of raw input ("brewworks.io")
KNOWN_EXTENSIONS = [
    ".com", ".net", ".org", ".io", ".co", ".ai", ".app", ".dev",
    ".me", ".xyz", ".store", ".shop", ".online", ".tech", ".site",
    ".website", ".biz", ".info", ".us", ".uk", ".ca", ".au", ".gg",
]

STOP_WORDS = {
    "a", "an", "the", "for", "to", "of", "in", "on", "at", "by",
    "be", "is", "are", "was", "were",
}

_TLD_RE = re.compile(r"^\.[a-z0-9-]{2,63}(\.[a-z0-9-]{2,63})?$")


@dataclass
class ParsedInput:
    name: str
    original_input: str
    extension: Optional[str] = None
    is_sentence: bool = False

    @property
    def has_extension(self) -> bool:
        return self.extension is not None


def normalize_name(raw: str) -> str:
    """Lowercase, keep [a-z0-9-], collapse dash runs and trim edge dashes"""
    slug = re.sub(r"[^a-z0-9-]", "", (raw or "").strip().lower())
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def validate_name(raw: str) -> str:
    """Normalize and validate a candidate name, raising InputValidationError"""
    if raw is None or not str(raw).strip():
        raise InputValidationError("Name is required")
    if len(raw) > MAX_RAW_INPUT_LENGTH:
        raise InputValidationError(f"Name input is too long (max {MAX_RAW_INPUT_LENGTH} characters)")
    name = normalize_name(raw)
    if len(name) < MIN_NAME_LENGTH:
        raise InputValidationError(f"Name must be at least {MIN_NAME_LENGTH} letters or digits")
    if len(name) > MAX_NAME_LENGTH:
        raise InputValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return name


def normalize_tld(tld: str) -> str:
    value = (tld or "").strip().lower()
    if not value.startswith("."):
        value = "." + value
    if not _TLD_RE.match(value):
        raise InputValidationError(f"Invalid TLD: {tld!r}")
    return value


def parse_user_input(raw: str) -> ParsedInput:
    """
    Parse what the user typed into a checkable name.

    - "brewworks.io"        -> name "brewworks", extension ".io"
    - "Brew Works"          -> name "brewworks"
    - "a tea shop for cats" -> stop words dropped -> "teashopcats"
    """
    if raw is None or not raw.strip():
        raise InputValidationError("Name is required")
    if len(raw) > MAX_RAW_INPUT_LENGTH:
        raise InputValidationError(f"Name input is too long (max {MAX_RAW_INPUT_LENGTH} characters)")

    trimmed = raw.strip().lower()
    words = trimmed.split()
    is_sentence = len(words) > 2

    extension = None
    stem = trimmed
    for ext in KNOWN_EXTENSIONS:
        if trimmed.endswith(ext) and len(trimmed) > len(ext):
            extension = ext
            stem = trimmed[:-len(ext)]
            break

    if is_sentence and extension is None:
        stem = "".join(w for w in words if w not in STOP_WORDS)
    else:
        stem = stem.replace(" ", "")

    return ParsedInput(
        name=validate_name(stem),
        original_input=raw,
        extension=extension,
        is_sentence=is_sentence,
    )


def tlds_to_check(parsed: Optional[ParsedInput] = None, requested: Optional[List[str]] = None,
                  extended: bool = False) -> List[str]:
    """Ordered, de-duplicated TLD list. An extension typed by the user goes first."""
    if requested:
        base = [normalize_tld(t) for t in requested]
    else:
        base = DEFAULT_TLDS + (EXTENDED_TLDS if extended else [])

    if parsed is not None and parsed.extension:
        base = [parsed.extension] + base

    return list(dict.fromkeys(base))
