# ============================================================================

import json
import logging
import time
from typing import Any, Dict, Iterator, List, Optional

from intelligent_query.exceptions import MalformedModelOutput
from intelligent_query.llm_service import TextGenerator
from intelligent_query.models import (
    AnswerMetadata,
    DecisionFactor,
    FactorStatus,
    QueryAnalysis,
    RelevantClause,
    ScoredChunk,
    StructuredAnswer,
)

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.7
FALLBACK_REASONING = "parsing fallback"


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Index just past the brace closing the one at `start`, or None"""
    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(text)):
        char = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return pos + 1

    return None


def iter_json_candidates(text: str) -> Iterator[str]:
    """Yield balanced top-level {...} substrings in order of appearance

    Braces inside JSON string literals are ignored. A balanced span is never
    re-entered, so a nested object is not offered on its own.
    """
    if not isinstance(text, str):
        return

    start = text.find('{')
    while start >= 0:
        end = _balanced_end(text, start)
        if end is None:
            start = text.find('{', start + 1)
            continue
        yield text[start:end]
        start = text.find('{', end)


def _decode_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        payload = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return payload if isinstance(payload, dict) else None


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced {...} substring that decodes to a JSON object, or None

    Prose braces such as "clause {4.2}" ahead of the real object are skipped.
    """
    for candidate in iter_json_candidates(text):
        if _decode_object(candidate) is not None:
            return candidate
    return None


def parse_model_output(text: str) -> Dict[str, Any]:
    """Parse the JSON object embedded in model text"""
    candidates = list(iter_json_candidates(text))
    if not candidates:
        raise MalformedModelOutput("No JSON object found in model output", raw_text=text)

    for candidate in candidates:
        payload = _decode_object(candidate)
        if payload is not None:
            return payload

    raise MalformedModelOutput("No valid JSON object in model output", raw_text=text)


def _clamp_score(value: Any) -> float:
    try:
        score = float(value)
    except OverflowError:
        # integers too large for a float
        return 1.0 if value > 0 else 0.0
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return max(0.0, min(1.0, score))


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value) if isinstance(value, (dict, list)) else str(value)


def _as_status(value: Any) -> FactorStatus:
    normalized = _as_text(value).strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return FactorStatus(normalized)
    except ValueError:
        return FactorStatus.CONDITIONAL


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


class AnswerSynthesizer:
    """Builds the RAG prompt, calls the model once and shapes its reply"""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def synthesize(
        self,
        query: str,
        ranked_chunks: List[ScoredChunk],
        analysis: QueryAnalysis
    ) -> StructuredAnswer:
        """Answer one question from its ranked chunks

        ModelUnavailable from the generator propagates to the caller.
        Unparseable output never raises; it degrades to a fallback answer.
        """
        start_time = time.time()

        context = self._prepare_context(ranked_chunks)
        prompt = self._create_prompt(query, analysis, context, len(ranked_chunks))

        raw_text = await self.generator.generate(prompt)
        processing_time_ms = (time.time() - start_time) * 1000

        try:
            payload = parse_model_output(raw_text)
            return self._coerce_answer(payload, ranked_chunks, analysis, processing_time_ms)
        except (MalformedModelOutput, ValueError, TypeError, RecursionError) as e:
            logger.warning(f"⚠️ Structured parsing failed, using raw model text: {e}")
            return self._create_fallback_answer(raw_text, ranked_chunks, analysis, processing_time_ms)

    def _prepare_context(self, ranked_chunks: List[ScoredChunk]) -> str:
        """Label each chunk with its rank and similarity"""
        if not ranked_chunks:
            return "No relevant context found."

        return "\n\n".join(
            f"[Relevant Context {i}] (Similarity: {item.similarity:.3f})\n{item.content}"
            for i, item in enumerate(ranked_chunks, 1)
        )

    def _create_prompt(self, query: str, analysis: QueryAnalysis, context: str, sources: int) -> str:
        intent = analysis.intent.value
        return f"""You are an intelligent document analysis system. Analyze the following query and provide a structured response.

Query: "{query}"
Query Intent: {intent}
Extracted Entities: {', '.join(analysis.entities)}
Keywords: {', '.join(analysis.keywords)}

Relevant Document Context:
{context}

Provide a structured JSON response with the following format:
{{
  "answer": "Direct answer to the question",
  "confidence": 0.95,
  "reasoning": "Explanation of how the answer was derived",
  "relevant_clauses": [
    {{
      "clause_id": "section_x",
      "clause_text": "Exact text from document",
      "relevance_score": 0.9
    }}
  ],
  "entities_found": ["entity1", "entity2"],
  "decision_factors": [
    {{
      "factor": "Specific condition or requirement",
      "status": "met/not_met/conditional",
      "explanation": "Why this factor applies"
    }}
  ],
  "metadata": {{
    "query_type": "{intent}",
    "processing_time_ms": 0,
    "sources_used": {sources}
  }}
}}

INSTRUCTIONS:
1. Answer based ONLY on the provided context
2. If the answer is not in the context, say so in "answer" and use a low confidence
3. Quote numbers, dates and defined terms exactly as they appear in the context
4. Ensure your response is valid JSON and provides clear, actionable information"""

    def _coerce_answer(
        self,
        payload: Dict[str, Any],
        ranked_chunks: List[ScoredChunk],
        analysis: QueryAnalysis,
        processing_time_ms: float
    ) -> StructuredAnswer:
        """Shape a parsed payload into a StructuredAnswer, defaulting what is missing"""
        clauses = [
            RelevantClause(
                clause_id=_as_text(item.get("clause_id")),
                clause_text=_as_text(item.get("clause_text")),
                relevance_score=_clamp_score(item.get("relevance_score"))
            )
            for item in _as_list(payload.get("relevant_clauses"))
            if isinstance(item, dict)
        ]
        factors = [
            DecisionFactor(
                factor=_as_text(item.get("factor")),
                status=_as_status(item.get("status")),
                explanation=_as_text(item.get("explanation"))
            )
            for item in _as_list(payload.get("decision_factors"))
            if isinstance(item, dict)
        ]

        return StructuredAnswer(
            answer=_as_text(payload.get("answer")),
            confidence=_clamp_score(payload.get("confidence")),
            reasoning=_as_text(payload.get("reasoning")),
            relevant_clauses=clauses,
            entities_found=[_as_text(e) for e in _as_list(payload.get("entities_found"))],
            decision_factors=factors,
            metadata=AnswerMetadata(
                query_type=analysis.intent.value,
                processing_time_ms=processing_time_ms,
                sources_used=len(ranked_chunks)
            )
        )

    def _create_fallback_answer(
        self,
        raw_text: str,
        ranked_chunks: List[ScoredChunk],
        analysis: QueryAnalysis,
        processing_time_ms: float
    ) -> StructuredAnswer:
        return StructuredAnswer(
            answer=raw_text if isinstance(raw_text, str) else _as_text(raw_text),
            confidence=FALLBACK_CONFIDENCE,
            reasoning=FALLBACK_REASONING,
            relevant_clauses=[],
            entities_found=list(analysis.entities),
            decision_factors=[],
            metadata=AnswerMetadata(
                query_type=analysis.intent.value,
                processing_time_ms=processing_time_ms,
                sources_used=len(ranked_chunks)
            )
        )

# ============================================================================
