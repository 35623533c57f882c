# ============================================================================

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuestionRequest(BaseModel):
    """Request model for processing questions"""
    documents: Optional[str] = Field(None, description="Document URL to download and query")
    document_text: Optional[str] = Field(None, description="Already extracted document text")
    questions: Optional[List[str]] = Field(None, description="List of questions to answer")


class ChunkMetadata(BaseModel):
    """Position of a chunk within the document's sentence stream"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chunk_index: int = Field(..., alias="chunkIndex")
    start_sentence: int = Field(..., alias="startSentence")
    end_sentence: int = Field(..., alias="endSentence")


class Chunk(BaseModel):
    """Sentence-aligned document segment"""
    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    metadata: ChunkMetadata


class ScoredChunk(BaseModel):
    """Chunk ranked against a single question"""
    model_config = ConfigDict(frozen=True)

    chunk: Chunk
    similarity: float = Field(..., ge=0.0, le=1.0)

    @property
    def id(self) -> str:
        return self.chunk.id

    @property
    def content(self) -> str:
        return self.chunk.content


class QueryIntent(str, Enum):
    COVERAGE = "coverage_query"
    PERIOD = "period_query"
    CONDITION = "condition_query"
    LIMIT = "limit_query"
    GENERAL = "general_query"


class QueryAnalysis(BaseModel):
    """Intent and coarse signals extracted from one question"""
    model_config = ConfigDict(frozen=True)

    intent: QueryIntent = QueryIntent.GENERAL
    entities: List[str] = []
    keywords: List[str] = []


class FactorStatus(str, Enum):
    MET = "met"
    NOT_MET = "not_met"
    CONDITIONAL = "conditional"


class RelevantClause(BaseModel):
    model_config = ConfigDict(frozen=True)

    clause_id: str = ""
    clause_text: str = ""
    relevance_score: float = Field(0.0, ge=0.0, le=1.0)


class DecisionFactor(BaseModel):
    model_config = ConfigDict(frozen=True)

    factor: str = ""
    status: FactorStatus = FactorStatus.CONDITIONAL
    explanation: str = ""


class AnswerMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    query_type: str
    processing_time_ms: float = 0.0
    sources_used: int = 0
    error: Optional[str] = None


class StructuredAnswer(BaseModel):
    """Structured answer for one question"""
    model_config = ConfigDict(frozen=True)

    answer: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str = ""
    relevant_clauses: List[RelevantClause] = []
    entities_found: List[str] = []
    decision_factors: List[DecisionFactor] = []
    metadata: AnswerMetadata


class SystemMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_processing_time_ms: float
    document_chunks_created: int
    questions_processed: int
    avg_confidence: float
    system_version: str


class BatchResult(BaseModel):
    """Response model with answers and their structured records"""
    model_config = ConfigDict(frozen=True)

    answers: List[str] = Field(..., description="Plain answers in question order")
    structured_responses: List[StructuredAnswer]
    system_metadata: SystemMetadata

# ============================================================================
