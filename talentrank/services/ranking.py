"""
Posting Ranker: scores every candidate of a position against a new job
posting, folds the result into each candidate's similarity history and
recomputes the position's global ranking.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from talentrank.models.models import CATEGORIES, CandidateProfile, CompanyOffer, JobPosting, RankedCandidate
from talentrank.models.schemas import PostingRegistration
from talentrank.models.settings import PipelineSettings
from talentrank.services.credentials import RECRUITER, CredentialStore
from talentrank.services.db import BaseStore, CANDIDATES, GLOBAL_RANKING, JOB_DESCRIPTIONS
from talentrank.services.extraction import AIServices
from talentrank.services.graph import SignalPipeline
from talentrank.services.matching import (
    current_similarity,
    fold_similarity,
    global_ranking_from_pool,
    is_gated,
    offered_candidates,
    rank_by_overall,
)
from talentrank.services.profiles import require_fields
from talentrank.utils.exceptions import NotFoundError, ValidationError
from talentrank.utils.logging_config import PerformanceMonitor, get_logger

logger = get_logger(__name__)


@dataclass
class RankingResult:
    ranked: List[RankedCandidate] = field(default_factory=list)
    candidates: Dict[str, CandidateProfile] = field(default_factory=dict)
    global_ranking: Dict[str, int] = field(default_factory=dict)
    selected: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)


def add_company_record(records: List[CompanyOffer], offer: CompanyOffer, dedup: bool) -> bool:
    """Append an offer/rejection snapshot; with dedup, one per company."""
    if dedup and any(r.company == offer.company for r in records):
        return False
    records.append(offer)
    return True


def record_outcome(candidate: CandidateProfile, offer: CompanyOffer, selected: bool, dedup: bool) -> bool:
    """File an offer or a rejection; with dedup, one outcome per company across both lists."""
    target, opposite = (
        (candidate.offers, candidate.rejections) if selected else (candidate.rejections, candidate.offers)
    )
    if dedup:
        opposite[:] = [r for r in opposite if r.company != offer.company]
    return add_company_record(target, offer, dedup)


def selection_notification(company: str, position: str) -> str:
    return (
        f"You have been selected by {company} for the position of {position}. "
        f"You will be contacted soon by the company representatives."
    )


class PostingRanker:
    def __init__(self, services: AIServices, settings: PipelineSettings):
        self.services = services
        self.settings = settings

    def category_similarity(self, candidate: CandidateProfile, posting: JobPosting, category: str) -> float:
        signal = candidate.signal(category)
        if self.settings.gate_zero_score_similarity and is_gated(signal):
            return 0.0
        try:
            return float(self.services.cosine_similarity(signal.embedding, posting.signal(category).embedding))
        except Exception as e:
            # One bad comparison must not sink the whole batch
            logger.warning(
                f"Similarity failed for candidate {candidate.candidate_id} ({category}), using 0: {e}"
            )
            return 0.0

    def rank_for_posting(self, posting: JobPosting, candidates: Dict[str, CandidateProfile]) -> RankingResult:
        """Score, fold, sort and select. Mutates and returns the given profiles."""
        current: Dict[str, float] = {}
        for cid, candidate in candidates.items():
            sims = {c: self.category_similarity(candidate, posting, c) for c in CATEGORIES}
            current[cid] = current_similarity(sims)
            fold_similarity(candidate, current[cid])
            logger.debug(
                f"Candidate {cid}: current={current[cid]:.4f} overall={candidate.overall_similarity:.4f}"
            )

        ranked = [
            RankedCandidate(rank=rank, candidate_id=cid, current_similarity=current[cid], overall_similarity=overall)
            for rank, cid, overall in rank_by_overall((cid, c.overall_similarity) for cid, c in candidates.items())
        ]

        result = RankingResult(
            ranked=ranked,
            candidates=candidates,
            global_ranking={r.candidate_id: r.rank for r in ranked},
        )

        snapshot = posting.offer_snapshot()
        dedup = self.settings.dedup_offers_by_recruiter
        offered = set(offered_candidates(ranked, posting.top_candidates))
        for r in ranked:
            candidate = candidates[r.candidate_id]
            if r.candidate_id in offered:
                result.selected.append(r.candidate_id)
                if record_outcome(candidate, snapshot.model_copy(), True, dedup):
                    candidate.notifications.append(selection_notification(posting.recruiter_id, posting.position))
                    candidate.new_notifications += 1
            else:
                result.rejected.append(r.candidate_id)
                record_outcome(candidate, snapshot.model_copy(), False, dedup)

        return result


class PostingService:
    """Registers job postings and keeps the stores consistent with the ranking."""

    def __init__(
        self,
        store: BaseStore,
        services: AIServices,
        settings: PipelineSettings,
        credentials: Optional[CredentialStore] = None,
        report_writer=None,
    ):
        self.store = store
        self.settings = settings
        self.credentials = credentials or CredentialStore(store)
        self.pipeline = SignalPipeline(services)
        self.ranker = PostingRanker(services, settings)
        self.report_writer = report_writer

    def register_posting(self, request: PostingRegistration) -> JobPosting:
        require_fields(
            recruiter_id=request.recruiter_id,
            password=request.password,
            salary=request.salary,
            job_description=request.job_description,
            position=request.position,
        )
        if request.top_candidates is None or request.top_candidates <= 0:
            raise ValidationError(
                "top_candidates must be a positive number", field="top_candidates", value=request.top_candidates
            )
        self.credentials.ensure(RECRUITER, request.recruiter_id, request.password)

        logger.info(f"Registering posting by {request.recruiter_id} for {request.position}")
        signals = self.pipeline.run(request.job_description, "jd", request.position)
        posting = JobPosting(
            recruiter_id=request.recruiter_id,
            salary=request.salary,
            job_description=request.job_description,
            position=request.position,
            top_candidates=request.top_candidates,
            **signals,
        )

        with self.store.locked(CANDIDATES):
            candidate_data = self.store.read(CANDIDATES)
            pool = {
                cid: CandidateProfile(**record)
                for cid, record in candidate_data.get(request.position, {}).items()
            }

            with PerformanceMonitor(f"rank {len(pool)} candidates for {request.position}", logger):
                result = self.ranker.rank_for_posting(posting, pool)

            candidate_data[request.position] = {
                cid: profile.model_dump(mode="json") for cid, profile in result.candidates.items()
            }
            self.store.write(CANDIDATES, candidate_data)
            self.store.put(GLOBAL_RANKING, request.position, record=result.global_ranking)

            posting.ranked_candidates = result.ranked
            if self.settings.truncate_ranked_list_in_storage:
                posting.ranked_candidates = result.ranked[: posting.top_candidates]
            self.store.put(
                JOB_DESCRIPTIONS, request.position, request.recruiter_id, record=posting.model_dump(mode="json")
            )

        logger.info(
            f"Posting {request.recruiter_id}/{request.position}: ranked {len(result.ranked)} candidates, "
            f"{len(result.selected)} offers, {len(result.rejected)} rejections"
        )

        if self.report_writer is not None:
            self.report_writer(posting, result.ranked)

        # Hand back the full ranking even when storage keeps only the top N
        posting.ranked_candidates = result.ranked
        return posting

    def rebuild_global_ranking(self, position: Optional[str] = None) -> Dict[str, Dict[str, int]]:
        """Recompute rankings from stored overall_similarity values."""
        with self.store.locked(CANDIDATES):
            candidate_data = self.store.read(CANDIDATES)
            if position is not None and position not in candidate_data:
                raise NotFoundError("No candidates for this position", resource="position", key=position)
            positions = [position] if position is not None else list(candidate_data)
            with self.store.locked(GLOBAL_RANKING):
                rankings = self.store.read(GLOBAL_RANKING)
                for pos in positions:
                    rankings[pos] = global_ranking_from_pool(candidate_data.get(pos, {}))
                self.store.write(GLOBAL_RANKING, rankings)

        logger.info(f"Rebuilt global ranking for {', '.join(positions) or 'no positions'}")
        return {pos: rankings[pos] for pos in positions}

    def get_global_ranking(self, position: str) -> Dict[str, int]:
        ranking = self.store.get(GLOBAL_RANKING, position)
        if ranking is None:
            raise NotFoundError("No ranking for this position", resource="position", key=position)
        return ranking

    def load_posting(self, position: str, recruiter_id: str) -> JobPosting:
        record = self.store.get(JOB_DESCRIPTIONS, position, recruiter_id)
        if not record:
            raise NotFoundError(
                "Job posting not found for given position and recruiter",
                resource="job_posting",
                key=f"{position}/{recruiter_id}",
            )
        return JobPosting(**record)

    def postings_for(self, recruiter_id: str) -> List[JobPosting]:
        return [
            JobPosting(**pool[recruiter_id])
            for pool in self.store.scan(JOB_DESCRIPTIONS).values()
            if isinstance(pool, dict) and recruiter_id in pool
        ]
