# ============================================================================

import pytest
from pydantic import ValidationError

from intelligent_query.chunker import DocumentChunker, split_sentences


def _numbered_document(count: int) -> str:
    return " ".join(f"Clause {i} states rule number {i}." for i in range(count))


class TestSentenceSplitting:
    """Test suite for sentence splitting"""

    def test_keeps_terminal_punctuation(self):
        assert split_sentences("Is it covered? Yes it is! Claims follow.") == [
            "Is it covered?", "Yes it is!", "Claims follow."
        ]

    def test_terminates_trailing_fragment(self):
        assert split_sentences("First part. No terminator here") == [
            "First part.", "No terminator here."
        ]

    def test_discards_empty_fragments(self):
        assert split_sentences("...  Hello there.  !!  ") == ["Hello there."]
        assert split_sentences("") == []


class TestDocumentChunker:
    """Test suite for document chunking"""

    @pytest.fixture
    def chunker(self):
        return DocumentChunker(chunk_size=50, overlap=2)

    def test_empty_document_yields_no_chunks(self, chunker):
        """Empty or whitespace-only text produces no chunks"""
        assert chunker.chunk("") == []
        assert chunker.chunk("   \n\t ") == []

    def test_overlapping_chunks(self, chunker):
        """The next chunk starts with the last two sentences of the stream"""
        text = "First sentence. Second sentence. Third sentence. Fourth sentence."

        chunks = chunker.chunk(text)

        assert [c.content for c in chunks] == [
            "First sentence. Second sentence. Third sentence.",
            "Second sentence. Third sentence. Fourth sentence.",
        ]
        assert chunks[1].metadata.chunk_index == 1
        assert chunks[1].metadata.start_sentence == 1
        assert chunks[1].metadata.end_sentence == 4

    def test_long_sentence_is_not_split(self):
        """A sentence longer than chunk_size becomes a chunk of its own"""
        long_sentence = "This sentence is much longer than the configured chunk size limit."
        chunker = DocumentChunker(chunk_size=40, overlap=2)

        chunks = chunker.chunk(f"Short one. {long_sentence} Tail end.")

        assert [c.content for c in chunks] == ["Short one.", long_sentence, "Tail end."]

    def test_no_sentence_is_dropped(self):
        """Concatenating chunks without their overlap rebuilds the sentence stream"""
        text = _numbered_document(40)
        sentences = split_sentences(text)
        chunker = DocumentChunker(chunk_size=200, overlap=2)

        chunks = chunker.chunk(text)

        rebuilt = []
        for chunk in chunks:
            chunk_sentences = split_sentences(chunk.content)
            assert chunk_sentences == sentences[chunk.metadata.start_sentence:chunk.metadata.end_sentence]
            for offset, sentence in enumerate(chunk_sentences):
                if chunk.metadata.start_sentence + offset >= len(rebuilt):
                    rebuilt.append(sentence)

        assert len(chunks) > 1
        assert rebuilt == sentences

    def test_chunk_count_grows_with_document(self):
        """Chunk count never decreases as the document gets longer"""
        chunker = DocumentChunker(chunk_size=120, overlap=2)

        counts = [len(chunker.chunk(_numbered_document(n))) for n in range(0, 30)]

        assert counts[0] == 0
        assert all(a <= b for a, b in zip(counts, counts[1:]))

    def test_chunk_ids_are_sequential(self):
        chunks = DocumentChunker(chunk_size=100, overlap=1).chunk(_numbered_document(20))

        assert [c.metadata.chunk_index for c in chunks] == list(range(len(chunks)))
        assert [c.id for c in chunks] == [f"chunk_{i}" for i in range(len(chunks))]

    def test_zero_overlap_repeats_nothing(self):
        text = _numbered_document(25)
        chunks = DocumentChunker(chunk_size=100, overlap=0).chunk(text)

        total = sum(len(split_sentences(c.content)) for c in chunks)
        assert total == 25

    def test_call_arguments_override_defaults(self, chunker):
        text = _numbered_document(10)

        assert len(chunker.chunk(text, chunk_size=10000)) == 1

    def test_metadata_serializes_with_camel_case(self, chunker):
        chunk = chunker.chunk("Only one sentence.")[0]

        assert chunk.model_dump(by_alias=True)["metadata"] == {
            "chunkIndex": 0, "startSentence": 0, "endSentence": 1
        }

    def test_chunks_are_immutable(self, chunker):
        chunk = chunker.chunk("Only one sentence.")[0]

        with pytest.raises(ValidationError):
            chunk.content = "changed"

    def test_invalid_configuration(self):
        with pytest.raises(ValueError):
            DocumentChunker(chunk_size=0)
        with pytest.raises(ValueError):
            DocumentChunker(overlap=-1)

# ============================================================================
