from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

# Fixed comparison facets, in evaluation order
CATEGORIES = ("skills", "education", "responsibilities", "experience")


class CategorySignal(BaseModel):
    text: str = ""
    embedding: Optional[List[float]] = None
    score: Optional[float] = None


class CompanyOffer(BaseModel):
    """Snapshot of a posting at the time an offer or rejection was made."""
    company: str
    salary: str
    job_description: str
    position: str


class CandidateProfile(BaseModel):
    candidate_id: str
    name: str
    university: str
    salary: str
    cv: str
    position: str
    skills: CategorySignal = Field(default_factory=CategorySignal)
    education: CategorySignal = Field(default_factory=CategorySignal)
    responsibilities: CategorySignal = Field(default_factory=CategorySignal)
    experience: CategorySignal = Field(default_factory=CategorySignal)
    ats: float = 0.0
    overall_similarity: float = 0.0
    similarity_history: List[float] = Field(default_factory=list)
    offers: List[CompanyOffer] = Field(default_factory=list)
    rejections: List[CompanyOffer] = Field(default_factory=list)
    accepted_offers: List[CompanyOffer] = Field(default_factory=list)
    declined_offers: List[CompanyOffer] = Field(default_factory=list)
    notifications: List[str] = Field(default_factory=list)
    new_notifications: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def signal(self, category: str) -> CategorySignal:
        return getattr(self, category)


class RankedCandidate(BaseModel):
    rank: int
    candidate_id: str
    current_similarity: float
    overall_similarity: float


class JobPosting(BaseModel):
    recruiter_id: str
    salary: str
    job_description: str
    position: str
    top_candidates: int
    skills: CategorySignal = Field(default_factory=CategorySignal)
    education: CategorySignal = Field(default_factory=CategorySignal)
    responsibilities: CategorySignal = Field(default_factory=CategorySignal)
    experience: CategorySignal = Field(default_factory=CategorySignal)
    ranked_candidates: List[RankedCandidate] = Field(default_factory=list)
    selected_candidates: List[str] = Field(default_factory=list)
    rejected_candidates: List[str] = Field(default_factory=list)
    candidates_accepted: List[str] = Field(default_factory=list)
    candidates_declined: List[str] = Field(default_factory=list)
    notifications: List[str] = Field(default_factory=list)
    new_notifications: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def signal(self, category: str) -> CategorySignal:
        return getattr(self, category)

    def offer_snapshot(self) -> CompanyOffer:
        return CompanyOffer(
            company=self.recruiter_id,
            salary=self.salary,
            job_description=self.job_description,
            position=self.position,
        )


class UniversityReportEntry(BaseModel):
    candidate_id: str
    position: str
    name: str
    university: str
    ats: float
    overall_similarity: float
    overall_rank: Optional[int] = None
