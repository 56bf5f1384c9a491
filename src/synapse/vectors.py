"""Character-frequency embeddings and cosine similarity.

The embedding is a deterministic bag-of-characters vector: every character of
the lower-cased input prefix is hashed into one of ``DIMENSIONS`` buckets by
its code point, counts are accumulated and the result is L2-normalised.
No model or network call is involved, so it is cheap enough to run on every
save and every search.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

DIMENSIONS = 128
MAX_CHARS = 500


def embed(text: str, dimensions: int = DIMENSIONS, max_chars: int = MAX_CHARS) -> list[float]:
    """Return a normalised *dimensions*-length vector for *text*.

    Only the first *max_chars* characters are hashed. Empty input yields an
    all-zero vector of the same length.
    """
    if dimensions < 1:
        raise ValueError("dimensions must be >= 1")

    vector = [0.0] * dimensions
    for ch in text[:max_chars].lower():
        vector[ord(ch) % dimensions] += 1.0

    magnitude = math.sqrt(sum(v * v for v in vector))
    if magnitude == 0:
        return vector
    return [v / magnitude for v in vector]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of *a* and *b*.

    Returns 0.0 when the lengths differ or either vector has zero magnitude.
    """
    if len(a) != len(b):
        return 0.0

    dot = 0.0
    mag_a = 0.0
    mag_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        mag_a += x * x
        mag_b += y * y

    if mag_a == 0 or mag_b == 0:
        return 0.0
    return dot / (math.sqrt(mag_a) * math.sqrt(mag_b))


def is_valid_embedding(vector: Sequence[float] | None, dimensions: int = DIMENSIONS) -> bool:
    """True if *vector* is a complete embedding of the expected length."""
    if vector is None or len(vector) != dimensions:
        return False
    return all(isinstance(v, (int, float)) and math.isfinite(v) for v in vector)
