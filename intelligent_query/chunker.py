# ============================================================================

import logging
import re
from typing import List, Optional

from intelligent_query.models import Chunk, ChunkMetadata

logger = logging.getLogger(__name__)

# A sentence is a run of non-terminal characters plus its terminal punctuation
SENTENCE_PATTERN = re.compile(r'[^.!?]+(?:[.!?]+|$)')


def split_sentences(text: str) -> List[str]:
    """Split text on terminal punctuation, keeping each sentence's terminator"""
    sentences = []
    for match in SENTENCE_PATTERN.finditer(text or ""):
        sentence = match.group(0).strip()
        if not sentence or not re.search(r'\w', sentence):
            continue
        if sentence[-1] not in '.!?':
            sentence += '.'
        sentences.append(sentence)
    return sentences


class DocumentChunker:
    """Sentence-aligned chunking with sentence overlap between neighbours"""

    def __init__(self, chunk_size: int = 1000, overlap: int = 2):
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        if overlap < 0:
            raise ValueError("overlap must not be negative")
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(
        self,
        text: str,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None
    ) -> List[Chunk]:
        """Create overlapping chunks without ever cutting inside a sentence

        A chunk is closed when the next sentence would push it past
        chunk_size. The following chunk starts with the last `overlap`
        sentences seen so far, unless those plus the incoming sentence
        already exceed chunk_size.
        """
        chunk_size = self.chunk_size if chunk_size is None else chunk_size
        overlap = self.overlap if overlap is None else overlap

        sentences = split_sentences(text)
        if not sentences:
            return []

        chunks: List[Chunk] = []
        buffer: List[int] = []  # sentence indices in the current chunk

        for i, sentence in enumerate(sentences):
            if buffer and self._length(sentences, buffer) + 1 + len(sentence) > chunk_size:
                chunks.append(self._create_chunk(sentences, buffer, len(chunks)))

                seed = list(range(max(0, i - overlap), i)) if overlap > 0 else []
                if seed and self._length(sentences, seed) + 1 + len(sentence) > chunk_size:
                    seed = []
                buffer = seed

            buffer.append(i)

        if buffer:
            chunks.append(self._create_chunk(sentences, buffer, len(chunks)))

        logger.info(f"📝 Created {len(chunks)} chunks from {len(sentences)} sentences")
        return chunks

    @staticmethod
    def _length(sentences: List[str], indices: List[int]) -> int:
        return len(" ".join(sentences[i] for i in indices))

    @staticmethod
    def _create_chunk(sentences: List[str], indices: List[int], chunk_index: int) -> Chunk:
        content = " ".join(sentences[i] for i in indices).strip()
        return Chunk(
            id=f"chunk_{chunk_index}",
            content=content,
            metadata=ChunkMetadata(
                chunk_index=chunk_index,
                start_sentence=indices[0],
                end_sentence=indices[-1] + 1
            )
        )

# ============================================================================
