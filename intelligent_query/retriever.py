# ============================================================================

import logging
from typing import List, Optional

from intelligent_query.models import Chunk, ScoredChunk
from intelligent_query.similarity import lexical_similarity

logger = logging.getLogger(__name__)


class ChunkRetriever:
    """Ranks a document's chunks against a question by lexical overlap"""

    def __init__(self, top_k: int = 5):
        self.top_k = top_k

    def retrieve(self, query: str, chunks: List[Chunk], top_k: Optional[int] = None) -> List[ScoredChunk]:
        """Return the top_k chunks by descending similarity, ties in document order"""
        top_k = self.top_k if top_k is None else top_k
        if not chunks or top_k < 1:
            return []

        scored = [
            ScoredChunk(chunk=chunk, similarity=lexical_similarity(query, chunk.content))
            for chunk in chunks
        ]
        # sorted() is stable, so equal scores keep their original order
        ranked = sorted(scored, key=lambda item: item.similarity, reverse=True)[:top_k]

        logger.info(f"🔍 Found {len(ranked)} relevant chunks for query")
        return ranked

# ============================================================================
