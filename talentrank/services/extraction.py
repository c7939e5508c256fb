"""
Wrappers around the external AI collaborators.

Each call degrades instead of failing: extraction returns "", embedding
returns None, scoring returns 0.0 and similarity returns 0.0. Rate limits are
retried inside the HTTP helpers before a call gives up.
"""
import os
from typing import List, Optional

import numpy as np

from talentrank.helpers.prompts import (
    EXTRACT_PROMPT,
    GENERIC_SYSTEM_PROMPT,
    SCORE_PROMPT,
    SCORE_SYSTEM_PROMPT,
    SYSTEM_PROMPTS,
)
from talentrank.utils.exceptions import ExternalServiceError, RateLimitError
from talentrank.utils.logging_config import get_logger
from talentrank.utils.utils import llm_chat, parse_score, service_cosine, service_embed

logger = get_logger(__name__)

UPSTREAM_ERRORS = (ExternalServiceError, RateLimitError)


def local_cosine(a: List[float], b: List[float]) -> float:
    va = np.asarray(a, dtype=np.float32)
    vb = np.asarray(b, dtype=np.float32)
    if va.shape != vb.shape or va.size == 0:
        raise ValueError(f"Cannot compare vectors of shape {va.shape} and {vb.shape}")
    den = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if den == 0.0:
        return 0.0
    return float(np.dot(va, vb)) / den


class AIServices:
    """Text extraction, embedding, category scoring and cosine similarity."""

    def __init__(self, similarity_backend: str = "remote"):
        self.similarity_backend = similarity_backend

    def extract_category(self, instruction: str, source_text: str, document_kind: str) -> str:
        system_prompt = SYSTEM_PROMPTS.get(document_kind, GENERIC_SYSTEM_PROMPT)
        try:
            return llm_chat(system_prompt, EXTRACT_PROMPT.format(text=source_text, question=instruction)).strip()
        except UPSTREAM_ERRORS as e:
            logger.warning(f"Extraction failed for {document_kind} ({instruction[:40]}...): {e.message}")
            return ""

    def complete(self, instruction: str, source_text: str) -> str:
        """Free-form answer over a document, used for candidate feedback."""
        return self.extract_category(instruction, source_text, "cv")

    def embed(self, text: str) -> Optional[List[float]]:
        if not text or not text.strip():
            return None
        try:
            return service_embed(text)
        except UPSTREAM_ERRORS as e:
            logger.warning(f"Embedding failed: {e.message}")
            return None

    def score_category(self, category: str, category_text: str, position: str) -> float:
        if not category_text or not category_text.strip():
            return 0.0
        try:
            reply = llm_chat(
                SCORE_SYSTEM_PROMPT,
                SCORE_PROMPT.format(category=category, position=position, text=category_text),
            )
        except UPSTREAM_ERRORS as e:
            logger.warning(f"Scoring failed for {category}: {e.message}")
            return 0.0
        return parse_score(reply)

    def cosine_similarity(self, a: Optional[List[float]], b: Optional[List[float]]) -> float:
        if not a or not b:
            return 0.0
        try:
            if self.similarity_backend == "local":
                return local_cosine(a, b)
            return service_cosine(a, b)
        except UPSTREAM_ERRORS as e:
            logger.warning(f"Similarity failed, using 0: {e.message}")
            return 0.0
        except ValueError as e:
            logger.warning(f"Similarity failed, using 0: {e}")
            return 0.0


def create_ai_services() -> AIServices:
    return AIServices(similarity_backend=os.getenv("SIMILARITY_BACKEND", "remote").lower())
