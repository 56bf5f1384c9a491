"""Tests for character-frequency embeddings and cosine similarity."""

from __future__ import annotations

import math

import pytest

from synapse.vectors import DIMENSIONS, cosine_similarity, embed, is_valid_embedding


def _norm(v):
    return math.sqrt(sum(x * x for x in v))


# ------------------------------------------------------------------
# embed()
# ------------------------------------------------------------------


def test_embed_has_fixed_dimension():
    assert len(embed("hello")) == DIMENSIONS
    assert len(embed("hello", dimensions=16)) == 16


def test_embed_is_normalised():
    assert _norm(embed("The quick brown fox")) == pytest.approx(1.0)


def test_embed_is_deterministic():
    assert embed("same input") == embed("same input")


def test_embed_is_case_insensitive():
    assert embed("Hello World") == embed("hello world")


def test_embed_empty_text_is_zero_vector():
    vector = embed("")
    assert len(vector) == DIMENSIONS
    assert all(v == 0.0 for v in vector)


def test_embed_only_hashes_prefix():
    prefix = "a" * 500
    assert embed(prefix + "zzzzzz") == embed(prefix)


def test_embed_rejects_zero_dimensions():
    with pytest.raises(ValueError):
        embed("x", dimensions=0)


# ------------------------------------------------------------------
# cosine_similarity()
# ------------------------------------------------------------------


def test_identical_texts_have_similarity_one():
    v = embed("machine learning")
    assert cosine_similarity(v, v) == pytest.approx(1.0)


def test_shared_characters_score_higher():
    query = embed("python tutorial")
    close = embed("python tutorials for beginners")
    far = embed("1234 5678 90")
    assert cosine_similarity(query, close) > cosine_similarity(query, far)


def test_dimension_mismatch_is_zero():
    assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0


def test_zero_vector_is_zero():
    assert cosine_similarity(embed(""), embed("anything")) == 0.0


def test_orthogonal_vectors():
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0


# ------------------------------------------------------------------
# is_valid_embedding()
# ------------------------------------------------------------------


def test_is_valid_embedding():
    assert is_valid_embedding(embed("x"))
    assert not is_valid_embedding(None)
    assert not is_valid_embedding([0.1, 0.2])
    assert not is_valid_embedding([float("nan")] * DIMENSIONS)
