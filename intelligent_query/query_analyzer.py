# ============================================================================

import logging
import re
from typing import Dict, List, Tuple

from intelligent_query.models import QueryAnalysis, QueryIntent

logger = logging.getLogger(__name__)

# Evaluated top to bottom; every matching rule overwrites the previous intent,
# so the last match wins.
# TODO: confirm with product whether first-match-wins was intended here
INTENT_RULES: List[Tuple[QueryIntent, Tuple[str, ...]]] = [
    (QueryIntent.COVERAGE, ("cover", "benefit")),
    (QueryIntent.PERIOD, ("waiting period", "grace period")),
    (QueryIntent.CONDITION, ("condition", "requirement")),
    (QueryIntent.LIMIT, ("limit", "amount")),
]

ENTITY_VOCABULARIES: Dict[str, Tuple[str, ...]] = {
    "medical": ("surgery", "treatment", "disease", "procedure", "condition", "diagnosis"),
    "financial": ("premium", "deductible", "copay", "limit", "amount", "discount"),
    "temporal": ("period", "waiting", "grace", "term", "duration"),
}

STOP_WORDS = frozenset({
    "what", "does", "this", "policy", "under", "from",
    "with", "that", "they", "have", "been",
})

MIN_KEYWORD_LENGTH = 4


class QueryAnalyzer:
    """Rule-based intent classification and entity/keyword extraction"""

    def analyze(self, question: str) -> QueryAnalysis:
        question_lower = (question or "").lower()

        analysis = QueryAnalysis(
            intent=self.classify_intent(question_lower),
            entities=self.extract_entities(question_lower),
            keywords=self.extract_keywords(question_lower)
        )
        logger.debug(
            f"🧭 Query analysis: intent={analysis.intent.value} "
            f"entities={analysis.entities} keywords={analysis.keywords}"
        )
        return analysis

    @staticmethod
    def classify_intent(question_lower: str) -> QueryIntent:
        intent = QueryIntent.GENERAL
        for rule_intent, terms in INTENT_RULES:
            if any(term in question_lower for term in terms):
                intent = rule_intent
        return intent

    @staticmethod
    def extract_entities(question_lower: str) -> List[str]:
        entities = []
        for vocabulary in ENTITY_VOCABULARIES.values():
            for term in vocabulary:
                if term in question_lower:
                    entities.append(term)
        return entities

    @staticmethod
    def extract_keywords(question_lower: str) -> List[str]:
        keywords = [
            word for word in re.split(r'\W+', question_lower)
            if len(word) >= MIN_KEYWORD_LENGTH and word not in STOP_WORDS
        ]
        # Keep first occurrence order, drop repeats
        return list(dict.fromkeys(keywords))

# ============================================================================
