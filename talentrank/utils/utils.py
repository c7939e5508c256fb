import os
import re
import requests
from dotenv import load_dotenv

from talentrank.utils.exceptions import ExternalServiceError, RateLimitError, retry_on_rate_limit
from talentrank.utils.logging_config import get_logger

load_dotenv()

logger = get_logger(__name__)

LLM_URL = os.getenv("LLM_URL", "https://api.mistral.ai/v1/chat/completions")
LLM_MODEL = os.getenv("LLM_MODEL", "mistral-large-2411")
EMBEDDING_SERVICE_URL = os.getenv("EMBEDDING_SERVICE_URL", "http://127.0.0.1:8000")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "60"))
RETRY_ATTEMPTS = int(os.getenv("RETRY_ATTEMPTS", "2"))
RETRY_BACKOFF = float(os.getenv("RETRY_BACKOFF", "2.0"))

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def _post_json(url: str, payload: dict, service_name: str, headers: dict = None) -> dict:
    try:
        resp = requests.post(url, json=payload, headers=headers, timeout=HTTP_TIMEOUT)
    except requests.RequestException as e:
        raise ExternalServiceError(f"{service_name} request failed: {e}", service_name=service_name, cause=e) from e

    if resp.status_code == 429:
        raise RateLimitError(f"{service_name} rate limit exceeded", service_name=service_name)
    try:
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        raise ExternalServiceError(
            f"{service_name} returned an invalid response: {e}",
            service_name=service_name,
            status_code=resp.status_code,
            cause=e,
        ) from e


@retry_on_rate_limit(max_retries=RETRY_ATTEMPTS, backoff_seconds=RETRY_BACKOFF, logger=logger)
def llm_chat(system_prompt: str, user_prompt: str, model: str = None) -> str:
    """Single-turn chat completion; returns the assistant message text."""
    api_key = os.getenv("MISTRAL_API_KEY", "")
    data = _post_json(
        LLM_URL,
        {
            "model": model or LLM_MODEL,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        },
        service_name="llm",
        headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
    )
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as e:
        raise ExternalServiceError(f"Unexpected completion payload: {e}", service_name="llm", cause=e) from e


@retry_on_rate_limit(max_retries=RETRY_ATTEMPTS, backoff_seconds=RETRY_BACKOFF, logger=logger)
def service_embed(text: str) -> list:
    data = _post_json(f"{EMBEDDING_SERVICE_URL}/get_embedding", {"text": text}, service_name="embedding")
    embedding = data.get("embedding") if isinstance(data, dict) else None
    if not isinstance(embedding, list):
        raise ExternalServiceError("Embedding service returned no vector", service_name="embedding")
    try:
        return [float(x) for x in embedding]
    except (TypeError, ValueError) as e:
        raise ExternalServiceError(f"Unexpected embedding payload: {e}", service_name="embedding", cause=e) from e


@retry_on_rate_limit(max_retries=RETRY_ATTEMPTS, backoff_seconds=RETRY_BACKOFF, logger=logger)
def service_cosine(embedding1: list, embedding2: list) -> float:
    data = _post_json(
        f"{EMBEDDING_SERVICE_URL}/cosine_similarity",
        {"embedding1": embedding1, "embedding2": embedding2},
        service_name="similarity",
    )
    try:
        return float(data["cosine_similarity"])
    except (KeyError, TypeError, ValueError) as e:
        raise ExternalServiceError(f"Unexpected similarity payload: {e}", service_name="similarity", cause=e) from e


def parse_score(s: str, fallback: float = 0.0) -> float:
    """Pull the first number out of an LLM reply, clamped to 0..100."""
    match = _NUMBER.search(s or "")
    if not match:
        return fallback
    value = float(match.group(0))
    return round(max(0.0, min(100.0, value)), 2)
