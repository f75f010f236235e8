"""Lightweight fuzzy matching primitives.

No edit distance and no full-text engine: substring / containment checks at
token level are enough for voice queries over a few hundred entries.
"""

import re

_NON_WORD_RE = re.compile(r"[^\w\s\-']")


def to_words(text: str) -> list[str]:
    """Lowercase content words, punctuation and emoji removed, length > 1."""
    if not text:
        return []
    cleaned = _NON_WORD_RE.sub(" ", text.lower())
    return [w for w in cleaned.split() if len(w) > 1]


def fuzzy_token_match(a: str, b: str) -> bool:
    """True if the tokens are equal or either contains the other."""
    if not a or not b:
        return False
    x = a.lower()
    y = b.lower()
    return x == y or x in y or y in x


def any_token_matches(query_tokens: list[str], content: str) -> bool:
    """True if any query token fuzzy-matches any word of content."""
    if not content or not query_tokens:
        return False
    words = to_words(content)
    return any(fuzzy_token_match(t, w) for t in query_tokens for w in words)


def count_token_matches(query_tokens: list[str], content: str) -> int:
    """Number of query tokens with at least one fuzzy match in content."""
    if not content or not query_tokens:
        return 0
    words = to_words(content)
    return sum(1 for t in query_tokens if any(fuzzy_token_match(t, w) for w in words))


def contains_substring(content: str, substring: str) -> bool:
    """Case-insensitive substring test."""
    if not content or not substring:
        return False
    return substring.lower() in content.lower()


def phrase_contains_in_order(content: str, query_tokens: list[str]) -> bool:
    """
    True if every query token appears in content, in query order.

    Tokens are matched as substrings and gaps are allowed, so
    ["metro", "ticket"] matches "Metro: buy a single ticket".
    """
    if not content or not query_tokens:
        return False
    lowered = content.lower()
    position = 0
    for token in query_tokens:
        found = lowered.find(token.lower(), position)
        if found == -1:
            return False
        position = found + len(token)
    return True


def all_tokens_match_somewhere(query_tokens: list[str], content: str) -> bool:
    """True if every query token fuzzy-matches some word of content."""
    if not query_tokens:
        return True
    words = to_words(content)
    return all(any(fuzzy_token_match(t, w) for w in words) for t in query_tokens)
