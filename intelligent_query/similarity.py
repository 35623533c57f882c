# ============================================================================

import re
from typing import Set

TOKEN_SPLIT = re.compile(r'\W+')


def word_tokens(text: str, min_length: int = 3) -> Set[str]:
    """Lowercase word tokens of at least `min_length` characters"""
    return {token for token in TOKEN_SPLIT.split((text or "").lower()) if len(token) >= min_length}


def lexical_similarity(a: str, b: str) -> float:
    """Jaccard overlap of the word tokens of at least three characters"""
    tokens_a = word_tokens(a)
    tokens_b = word_tokens(b)

    union = tokens_a | tokens_b
    if not union:
        return 0.0

    return len(tokens_a & tokens_b) / len(union)

# ============================================================================
