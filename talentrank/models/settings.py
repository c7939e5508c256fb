"""
Pipeline Settings for the registration and ranking flow
"""
import os
from typing import Literal
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from dotenv import load_dotenv

from talentrank.utils.exceptions import ConfigurationError

load_dotenv()

AtsPolicy = Literal["category_score", "text_length"]


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class PipelineSettings(BaseModel):
    """Switches that select between the behaviours the pipeline supports"""
    gate_zero_score_similarity: bool = Field(
        default=True, description="Force a category similarity to 0 when the candidate's category score is 0"
    )
    dedup_offers_by_recruiter: bool = Field(
        default=True, description="Keep at most one offer/rejection per recruiter on a candidate"
    )
    truncate_ranked_list_in_storage: bool = Field(
        default=False, description="Store only the top N ranked candidates on the posting"
    )
    ats_policy: AtsPolicy = Field(
        default="category_score", description="category_score (mean of scores) or text_length (legacy)"
    )

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        try:
            return cls(
                gate_zero_score_similarity=_env_flag("GATE_ZERO_SCORE_SIMILARITY", True),
                dedup_offers_by_recruiter=_env_flag("DEDUP_OFFERS_BY_RECRUITER", True),
                truncate_ranked_list_in_storage=_env_flag("TRUNCATE_RANKED_LIST_IN_STORAGE", False),
                ats_policy=os.getenv("ATS_POLICY", "category_score"),
            )
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid pipeline settings: {e}", config_key="ATS_POLICY", cause=e) from e
