# ============================================================================

import pytest

from intelligent_query.models import Chunk, ChunkMetadata
from intelligent_query.retriever import ChunkRetriever
from intelligent_query.similarity import lexical_similarity, word_tokens


def _chunk(index: int, content: str) -> Chunk:
    return Chunk(
        id=f"chunk_{index}",
        content=content,
        metadata=ChunkMetadata(chunk_index=index, start_sentence=index, end_sentence=index + 1)
    )


class TestLexicalSimilarity:
    """Test suite for Jaccard word overlap"""

    def test_identical_text_scores_one(self):
        assert lexical_similarity("Cataract surgery waiting period", "Cataract surgery waiting period") == 1.0

    def test_symmetric(self):
        pairs = [
            ("What is the grace period?", "A grace period of thirty days applies."),
            ("maternity benefit", "Room rent is limited."),
            ("", "anything at all"),
        ]
        for a, b in pairs:
            assert lexical_similarity(a, b) == lexical_similarity(b, a)

    def test_ignores_short_tokens_and_case(self):
        assert word_tokens("Is it ON the Cat's mat?") == {"the", "cat", "mat"}
        assert lexical_similarity("the cat", "THE CAT sat") == pytest.approx(2 / 3)

    def test_no_tokens_scores_zero(self):
        assert lexical_similarity("is on", "is on") == 0.0
        assert lexical_similarity("", "") == 0.0

    def test_score_in_unit_interval(self):
        score = lexical_similarity("waiting period for surgery", "surgery has a waiting period of two years")
        assert 0.0 < score < 1.0


class TestChunkRetriever:
    """Test suite for chunk ranking"""

    @pytest.fixture
    def chunks(self):
        return [
            _chunk(0, "Room rent is limited to one percent of the sum insured."),
            _chunk(1, "A waiting period of 24 months applies to cataract surgery."),
            _chunk(2, "A grace period of thirty days is provided for premium payment."),
            _chunk(3, "Maternity benefits are limited to two deliveries."),
        ]

    def test_ranks_by_similarity(self, chunks):
        """Most lexically similar chunk comes first"""
        results = ChunkRetriever().retrieve("What is the waiting period for cataract surgery?", chunks)

        assert results[0].id == "chunk_1"
        scores = [r.similarity for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_respects_top_k(self, chunks):
        results = ChunkRetriever(top_k=2).retrieve("grace period premium", chunks)

        assert len(results) == 2
        assert {r.id for r in results} <= {c.id for c in chunks}

    def test_fewer_chunks_than_top_k(self, chunks):
        assert len(ChunkRetriever().retrieve("anything", chunks[:2], top_k=5)) == 2

    def test_empty_chunk_list(self):
        assert ChunkRetriever().retrieve("grace period", []) == []

    def test_ties_keep_document_order(self):
        """Equal scores keep the original chunk order"""
        chunks = [_chunk(i, "Unrelated wording about nothing.") for i in range(4)]

        results = ChunkRetriever(top_k=3).retrieve("grace period premium", chunks)

        assert [r.id for r in results] == ["chunk_0", "chunk_1", "chunk_2"]
        assert all(r.similarity == 0.0 for r in results)

    def test_scored_chunk_wraps_input_chunk(self, chunks):
        result = ChunkRetriever(top_k=1).retrieve("maternity deliveries", chunks)[0]

        assert result.chunk == chunks[3]
        assert result.content == chunks[3].content

# ============================================================================
