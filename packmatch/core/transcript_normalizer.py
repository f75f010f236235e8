"""Transcript normalization for typed and spoken queries.

Deterministic stop-word removal. No I/O, no model calls. The output token
list feeds the intent guard and the scorer; an empty list means "ask again",
not "no results".
"""

import re

from packmatch.core.logging import get_logger

logger = get_logger(__name__)

# Filler, meta (speech-to-system / politeness), grammatical and question words.
# Intent is carried by whatever noun or verb survives.
STOP_WORDS = frozenset(
    [
        # Filler
        "um", "uh", "er", "ah", "oh", "well", "like", "just", "really", "very",
        "quite", "actually", "basically", "literally", "maybe", "probably",
        "perhaps", "sort", "kind", "know", "mean", "think", "guess",
        # Meta
        "please", "can", "you", "change", "system", "right", "now",
        "i", "me", "my", "we", "this", "that", "it", "its", "it's",
        "i'm", "i've", "i'd", "i'll", "am", "are",
        # Grammatical
        "the", "a", "an", "is", "to", "for", "of", "with", "from",
        "in", "on", "at", "by", "and", "or", "but", "so", "if", "then",
        # Question words
        "what", "where", "when", "why", "how",
        "what's", "where's", "how's", "there's",
    ]
)

_SPEECH_FILLER_RE = re.compile(r"\b(um|uh|er|ah|oh)\b", re.IGNORECASE)
_SPEECH_PHRASE_RE = re.compile(r"\b(like|you know|i mean|i think|i guess)\b", re.IGNORECASE)
_PUNCTUATION_RE = re.compile(r"[.,!?;:]")
_WHITESPACE_RE = re.compile(r"\s+")
_EDGE_PUNCTUATION = ".,!?;:\"()[]{}"


def extract_query_tokens(transcript: str) -> list[str]:
    """
    Extract search tokens from a raw query or speech transcript.

    Lowercases, splits on whitespace, trims edge punctuation ("lost?" → "lost"),
    removes stop words and drops tokens of length <= 1.

    Examples:
        "  Where can I eat late tonight  " -> ["eat", "late", "tonight"]
        "um like toilet nearby please"     -> ["toilet", "nearby"]
        "is this area safe at night"       -> ["area", "safe", "night"]

    Args:
        transcript: Raw text; non-string input yields []

    Returns:
        Ordered token list, possibly empty
    """
    if not transcript or not isinstance(transcript, str):
        return []

    words = [w.strip(_EDGE_PUNCTUATION) for w in transcript.lower().strip().split()]
    tokens = [w for w in words if w not in STOP_WORDS and len(w) > 1]

    logger.debug(f"extract_query_tokens in={transcript!r} out={tokens}")
    return tokens


def normalize_transcript(transcript: str) -> str:
    """Tokens re-joined into a single normalized query string."""
    return " ".join(extract_query_tokens(transcript))


def clean_transcript(transcript: str) -> str:
    """
    Remove common speech-recognition artefacts, then normalize.

    Strips filler sounds, hedging phrases ("you know", "i mean") and
    sentence punctuation before stop-word removal.
    """
    if not transcript or not isinstance(transcript, str):
        return ""

    cleaned = _SPEECH_FILLER_RE.sub(" ", transcript)
    cleaned = _SPEECH_PHRASE_RE.sub(" ", cleaned)
    cleaned = _PUNCTUATION_RE.sub(" ", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()

    return normalize_transcript(cleaned)


def has_searchable_tokens(query: str) -> bool:
    """True if anything is left after stop-word removal."""
    return len(extract_query_tokens(query)) > 0


def extract_search_intent(transcript: str) -> str:
    """
    Core query without filler.

    If cleaning leaves fewer than 2 characters the trimmed original is
    returned, since a single short word may still be the whole intent.
    """
    cleaned = clean_transcript(transcript)
    if len(cleaned) < 2:
        return transcript.strip() if isinstance(transcript, str) else ""
    return cleaned
