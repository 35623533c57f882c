"""
HackRx Intelligent Query - retrieval-augmented question answering over policy documents
FastAPI application for document chunking, retrieval and structured answers
"""

import hashlib
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from intelligent_query.answer_synthesizer import AnswerSynthesizer
from intelligent_query.chunker import DocumentChunker
from intelligent_query.config import Settings
from intelligent_query.document_loader import DocumentLoader
from intelligent_query.exceptions import InvalidInput
from intelligent_query.llm_service import create_generator
from intelligent_query.models import BatchResult, QuestionRequest
from intelligent_query.monitoring import PerformanceMonitor
from intelligent_query.query_analyzer import QueryAnalyzer
from intelligent_query.query_processor import QueryProcessor
from intelligent_query.retriever import ChunkRetriever

settings = Settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Global components
document_loader = None
query_processor = None
monitor = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources"""
    global document_loader, query_processor, monitor

    logger.info("🚀 Starting HackRx Intelligent Query service...")

    monitor = PerformanceMonitor()
    document_loader = DocumentLoader(
        max_bytes=settings.document_max_bytes,
        timeout=settings.document_timeout_seconds
    )
    query_processor = QueryProcessor(
        chunker=DocumentChunker(
            chunk_size=settings.chunk_size,
            overlap=settings.chunk_overlap_sentences
        ),
        analyzer=QueryAnalyzer(),
        retriever=ChunkRetriever(top_k=settings.top_k),
        synthesizer=AnswerSynthesizer(create_generator(settings)),
        monitor=monitor,
        max_questions=settings.max_questions,
        max_concurrent_questions=settings.max_concurrent_questions,
        system_version=settings.system_version
    )

    logger.info("✅ Application initialized successfully")

    yield

    logger.info("🔄 Shutting down application...")
    query_processor = None
    document_loader = None
    logger.info("✅ Application shutdown complete")


app = FastAPI(
    title="HackRx Intelligent Query",
    description="Retrieval-augmented question answering over policy documents",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _system_error(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "error": message,
            "system_metadata": {
                "error_type": "system_error",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "HackRx Intelligent Query",
        "version": settings.system_version,
        "status": "active",
        "endpoints": {
            "main": "/hackrx/run",
            "health": "/health",
            "metrics": "/metrics"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "components": {
            "query_processor": "active" if query_processor else "inactive",
            "document_loader": "active" if document_loader else "inactive",
            "llm_provider": settings.llm_provider,
            "monitor": "active" if monitor else "inactive"
        }
    }


@app.post("/hackrx/run", response_model=BatchResult)
async def process_questions(request: QuestionRequest):
    """
    Main endpoint for answering questions about one document

    Args:
        request: QuestionRequest with the document (text or URL) and questions

    Returns:
        BatchResult with one structured answer per question, in order
    """
    start_time = time.time()
    source = request.document_text if request.document_text is not None else (request.documents or "")
    request_id = hashlib.md5(f"{source[:200]}{len(request.questions or [])}{start_time}".encode()).hexdigest()[:8]

    if query_processor is None:
        return _system_error("Query processor is not initialized")

    logger.info(f"🔍 [{request_id}] Processing request with {len(request.questions or [])} questions")

    try:
        questions = query_processor.validate_questions(request.questions)

        if request.document_text is not None:
            document_text = request.document_text
        elif request.documents:
            logger.info(f"📄 [{request_id}] Document: {request.documents[:100]}...")
            document_text = await document_loader.load_text(request.documents)
        else:
            raise InvalidInput('Missing required fields: documents (URL) or document_text, and questions (array)')

        result = await query_processor.run(document_text, questions, request_id=request_id)

        logger.info(f"✅ [{request_id}] Completed in {time.time() - start_time:.2f}s")
        return result

    except InvalidInput as e:
        logger.warning(f"⚠️ [{request_id}] Invalid request: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})

    except Exception as e:
        logger.error(f"❌ [{request_id}] Processing failed: {e}")
        if monitor:
            monitor.record_request(
                request_id=request_id,
                processing_time_ms=(time.time() - start_time) * 1000,
                question_count=0,
                avg_confidence=0.0,
                success=False
            )
        return _system_error(str(e))


@app.get("/metrics")
async def get_metrics():
    """Get system performance metrics"""
    if monitor is None:
        return {"error": "Monitor is not initialized"}
    return monitor.get_metrics()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
