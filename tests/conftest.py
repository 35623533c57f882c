# ============================================================================

import json

import pytest

from intelligent_query.exceptions import ModelUnavailable

POLICY_TEXT = (
    "The policy covers hospitalization expenses for accidents and illness. "
    "A waiting period of 24 months applies to cataract surgery. "
    "A grace period of thirty days is provided for premium payment. "
    "Maternity benefits are limited to two deliveries during the policy term. "
    "Pre-existing conditions are covered after 36 months of continuous coverage. "
    "Room rent is limited to one percent of the sum insured per day."
)


class ScriptedGenerator:
    """Text generator returning queued replies and recording prompts"""

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def json_reply(answer: str = "Yes", confidence: float = 0.9, **extra) -> str:
    payload = {
        "answer": answer,
        "confidence": confidence,
        "reasoning": "Found in the policy wording",
        "relevant_clauses": [],
        "entities_found": [],
        "decision_factors": [],
        "metadata": {"query_type": "general_query", "processing_time_ms": 150, "sources_used": 1}
    }
    payload.update(extra)
    return json.dumps(payload)


@pytest.fixture
def policy_text():
    return POLICY_TEXT


@pytest.fixture
def make_generator():
    return ScriptedGenerator


@pytest.fixture
def make_reply():
    return json_reply


@pytest.fixture
def model_down():
    return ModelUnavailable("Gemini API error: 503")

# ============================================================================
