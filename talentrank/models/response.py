# models/response.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from talentrank.models.models import (
    CategorySignal,
    CandidateProfile,
    CompanyOffer,
    JobPosting,
    RankedCandidate,
    UniversityReportEntry,
)


class SignalView(BaseModel):
    """A category signal as shown to clients, without its embedding."""
    text: str
    score: Optional[float] = None

    @classmethod
    def from_signal(cls, signal: CategorySignal) -> "SignalView":
        return cls(text=signal.text, score=signal.score)


class CandidateView(BaseModel):
    candidate_id: str
    name: str
    university: str
    salary: str
    cv: str
    position: str
    skills: SignalView
    education: SignalView
    responsibilities: SignalView
    experience: SignalView
    ats: float
    overall_similarity: float
    similarity_history: List[float]
    offers: List[CompanyOffer]
    rejections: List[CompanyOffer]
    accepted_offers: List[CompanyOffer]
    declined_offers: List[CompanyOffer]
    notifications: List[str]
    new_notifications: int
    overall_rank: Optional[int] = None

    @classmethod
    def from_profile(cls, profile: CandidateProfile, overall_rank: Optional[int] = None) -> "CandidateView":
        data = profile.model_dump(exclude={"skills", "education", "responsibilities", "experience", "created_at"})
        return cls(
            **data,
            skills=SignalView.from_signal(profile.skills),
            education=SignalView.from_signal(profile.education),
            responsibilities=SignalView.from_signal(profile.responsibilities),
            experience=SignalView.from_signal(profile.experience),
            overall_rank=overall_rank,
        )


class PostingView(BaseModel):
    recruiter_id: str
    salary: str
    job_description: str
    position: str
    top_candidates: int
    skills: SignalView
    education: SignalView
    responsibilities: SignalView
    experience: SignalView
    ranked_candidates: List[RankedCandidate]
    selected_candidates: List[str]
    rejected_candidates: List[str]
    candidates_accepted: List[str]
    candidates_declined: List[str]
    notifications: List[str]
    new_notifications: int
    created_at: datetime

    @classmethod
    def from_posting(cls, posting: JobPosting) -> "PostingView":
        data = posting.model_dump(exclude={"skills", "education", "responsibilities", "experience"})
        return cls(
            **data,
            skills=SignalView.from_signal(posting.skills),
            education=SignalView.from_signal(posting.education),
            responsibilities=SignalView.from_signal(posting.responsibilities),
            experience=SignalView.from_signal(posting.experience),
        )


class MessageResponse(BaseModel):
    message: str


class CandidateResponse(BaseModel):
    message: str
    candidate: CandidateView


class CandidateLoginResponse(BaseModel):
    message: str
    candidates: List[CandidateView]


class PostingResponse(BaseModel):
    message: str
    job_posting: PostingView


class RecruiterLoginResponse(BaseModel):
    message: str
    job_postings: List[PostingView]


class UniversityReport(BaseModel):
    message: str
    university: str
    candidates: List[UniversityReportEntry]
    created_at: datetime = Field(default_factory=datetime.utcnow)


class RankingResponse(BaseModel):
    position: str
    ranking: Dict[str, int]


class RankingRebuildResponse(BaseModel):
    message: str
    rankings: Dict[str, Dict[str, int]]


class FeedbackEntry(BaseModel):
    candidate: CandidateView
    feedback: str


class FeedbackResponse(BaseModel):
    message: str
    feedback: Dict[str, FeedbackEntry]
