from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from talentrank.models.models import CATEGORIES, CandidateProfile, CategorySignal

# Legacy ATS: characters of skills + experience text per point
TEXT_LENGTH_DIVISOR = 20.0


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


def ats_from_category_scores(signals: Dict[str, CategorySignal]) -> float:
    """Mean of the four category scores, missing scores counting as 0."""
    scores = [(signals[c].score or 0.0) if c in signals else 0.0 for c in CATEGORIES]
    return round(clamp(mean(scores)), 2)


def ats_from_text_length(signals: Dict[str, CategorySignal]) -> float:
    skills = signals.get("skills")
    experience = signals.get("experience")
    length = len(skills.text if skills else "") + len(experience.text if experience else "")
    return round(clamp(length / TEXT_LENGTH_DIVISOR), 2)


ATS_POLICIES = {
    "category_score": ats_from_category_scores,
    "text_length": ats_from_text_length,
}


def compute_ats(signals: Dict[str, CategorySignal], policy: str = "category_score") -> float:
    return ATS_POLICIES[policy](signals)


def is_gated(signal: CategorySignal) -> bool:
    """A category whose score is 0 or missing contributes no similarity."""
    return not signal.score


def current_similarity(category_sims: Dict[str, float]) -> float:
    """Unweighted mean over all four categories."""
    return mean([category_sims.get(c, 0.0) for c in CATEGORIES])


def fold_similarity(candidate: CandidateProfile, current: float) -> float:
    """Append a posting's similarity to the history and refresh the running mean."""
    candidate.similarity_history.append(current)
    candidate.overall_similarity = mean(candidate.similarity_history)
    return candidate.overall_similarity


def rank_by_overall(items: Iterable[Tuple[str, float]]) -> List[Tuple[int, str, float]]:
    """Sort (id, overall_similarity) pairs descending; rank is 1-based.

    sorted() is stable, so ties keep their input order.
    """
    ordered = sorted(items, key=lambda it: it[1], reverse=True)
    return [(i + 1, cid, sim) for i, (cid, sim) in enumerate(ordered)]


def global_ranking_from_pool(pool: Dict[str, dict]) -> Dict[str, int]:
    """Rebuild {candidate_id: rank} from stored candidate records."""
    ranked = rank_by_overall(
        (cid, float(record.get("overall_similarity") or 0.0)) for cid, record in pool.items()
    )
    return {cid: rank for rank, cid, _ in ranked}


def rank_sort_key(overall_rank: Optional[int]) -> Tuple[int, int]:
    """Ranked entries first by rank, unranked ones after all of them."""
    return (0, overall_rank) if overall_rank is not None else (1, 0)


def offered_candidates(ranked, top_n: int) -> List[str]:
    """Ids of ranked candidates that receive an offer.

    Top N by rank, except that a candidate at 0 similarity only qualifies
    when nobody in the pool scored above 0.
    """
    any_positive = any(r.overall_similarity > 0 for r in ranked)
    return [
        r.candidate_id
        for r in ranked
        if r.rank <= top_n and (r.overall_similarity > 0 or not any_positive)
    ]
