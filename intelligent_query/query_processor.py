# ============================================================================

import asyncio
import logging
import time
import uuid
from typing import List, Optional

from intelligent_query.answer_synthesizer import AnswerSynthesizer
from intelligent_query.chunker import DocumentChunker
from intelligent_query.exceptions import InvalidInput
from intelligent_query.models import (
    AnswerMetadata,
    BatchResult,
    Chunk,
    StructuredAnswer,
    SystemMetadata,
)
from intelligent_query.monitoring import PerformanceMonitor
from intelligent_query.query_analyzer import QueryAnalyzer
from intelligent_query.retriever import ChunkRetriever

logger = logging.getLogger(__name__)


class QueryProcessor:
    """Main query processing orchestrator"""

    def __init__(
        self,
        chunker: DocumentChunker,
        analyzer: QueryAnalyzer,
        retriever: ChunkRetriever,
        synthesizer: AnswerSynthesizer,
        monitor: Optional[PerformanceMonitor] = None,
        max_questions: int = 20,
        max_concurrent_questions: int = 1,
        system_version: str = "HackRx-RAG-v1.0"
    ):
        self.chunker = chunker
        self.analyzer = analyzer
        self.retriever = retriever
        self.synthesizer = synthesizer
        self.monitor = monitor
        self.max_questions = max_questions
        self.max_concurrent_questions = max_concurrent_questions
        self.system_version = system_version

        logger.info("✅ Query processor initialized")

    def validate_questions(self, questions: Optional[List[str]]) -> List[str]:
        """Reject a missing, empty or oversized question list"""
        if not questions:
            raise InvalidInput('At least one question is required')
        if len(questions) > self.max_questions:
            raise InvalidInput(f'Maximum {self.max_questions} questions allowed')
        for i, question in enumerate(questions, 1):
            if not isinstance(question, str) or not question.strip():
                raise InvalidInput(f'Question {i} is empty')
        return list(questions)

    def validate_document(self, document_text: Optional[str]) -> str:
        if not isinstance(document_text, str) or not document_text.strip():
            raise InvalidInput('Document text is required')
        return document_text

    async def run(
        self,
        document_text: str,
        questions: List[str],
        request_id: Optional[str] = None
    ) -> BatchResult:
        """Answer every question against one document

        Input validation failures raise InvalidInput before any work is done.
        Any other failure is confined to its own question's record.
        """
        request_id = request_id or uuid.uuid4().hex[:8]
        questions = self.validate_questions(questions)
        document_text = self.validate_document(document_text)

        start_time = time.time()
        logger.info(f"🔄 [{request_id}] Processing {len(questions)} questions")

        chunks = self.chunker.chunk(document_text)
        logger.info(f"📄 [{request_id}] Document split into {len(chunks)} chunks")

        semaphore = asyncio.Semaphore(self.max_concurrent_questions)

        async def bounded_task(index: int, question: str) -> StructuredAnswer:
            async with semaphore:
                return await self._process_single_question(chunks, question, index, request_id)

        # gather keeps results in question order
        structured = await asyncio.gather(
            *[bounded_task(i, question) for i, question in enumerate(questions)]
        )

        total_time_ms = (time.time() - start_time) * 1000
        avg_confidence = sum(answer.confidence for answer in structured) / len(structured)
        failed = sum(1 for answer in structured if answer.metadata.query_type == "error")

        result = BatchResult(
            answers=[answer.answer for answer in structured],
            structured_responses=list(structured),
            system_metadata=SystemMetadata(
                total_processing_time_ms=total_time_ms,
                document_chunks_created=len(chunks),
                questions_processed=len(questions),
                avg_confidence=avg_confidence,
                system_version=self.system_version
            )
        )

        logger.info(f"✅ [{request_id}] All questions processed in {total_time_ms:.0f}ms")
        logger.info(f"📊 [{request_id}] Average confidence: {avg_confidence:.2f}, failed questions: {failed}")

        if self.monitor:
            self.monitor.record_request(
                request_id=request_id,
                processing_time_ms=total_time_ms,
                question_count=len(questions),
                avg_confidence=avg_confidence,
                failed_questions=failed
            )

        return result

    async def _process_single_question(
        self,
        chunks: List[Chunk],
        question: str,
        index: int,
        request_id: str
    ) -> StructuredAnswer:
        """Process a single question"""
        logger.info(f"❓ [{request_id}] Question {index + 1}: {question[:80]}")

        try:
            analysis = self.analyzer.analyze(question)
            ranked_chunks = self.retriever.retrieve(question, chunks)
            return await self.synthesizer.synthesize(question, ranked_chunks, analysis)

        except Exception as e:
            logger.error(f"❌ [{request_id}] Question {index + 1} failed: {e}")
            return self._create_error_result(str(e))

    def _create_error_result(self, error_msg: str) -> StructuredAnswer:
        """Create error result for failed processing"""
        return StructuredAnswer(
            answer=f"Failed to process this question: {error_msg}",
            confidence=0.0,
            reasoning="Processing error occurred",
            relevant_clauses=[],
            entities_found=[],
            decision_factors=[],
            metadata=AnswerMetadata(
                query_type="error",
                processing_time_ms=0.0,
                sources_used=0,
                error=error_msg
            )
        )

# ============================================================================
