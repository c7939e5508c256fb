from pydantic import BaseModel, BeforeValidator, Field
from typing import Annotated, Literal, Optional

from talentrank.helpers.parsing import decode_document
from talentrank.utils.exceptions import ValidationError


def _to_str(v):
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


# Ids and salaries may arrive as JSON numbers
LooseStr = Annotated[str, BeforeValidator(_to_str)]


# -------- Candidates --------
class CandidateIdentity(BaseModel):
    candidate_id: LooseStr
    name: str
    university: str
    salary: LooseStr
    password: str


class CVUpload(BaseModel):
    """A CV given either as plain text or as a base64 encoded document."""
    cv: Optional[str] = None
    cv_base64: Optional[str] = None
    cv_filename: Optional[str] = None

    def resolve_cv(self) -> str:
        if self.cv and self.cv.strip():
            return self.cv
        if self.cv_base64:
            return decode_document(self.cv_base64, self.cv_filename or "")
        raise ValidationError("A CV is required, either as text or as a base64 document", field="cv")


class CandidateRegistration(CVUpload):
    candidate_id: LooseStr
    name: str
    university: str
    salary: LooseStr
    password: str
    position: str

    def identity(self) -> CandidateIdentity:
        return CandidateIdentity(
            candidate_id=self.candidate_id,
            name=self.name,
            university=self.university,
            salary=self.salary,
            password=self.password,
        )


class CandidateCVAddition(CVUpload):
    candidate_id: LooseStr
    password: str
    position: str


class CandidateLogin(BaseModel):
    candidate_id: LooseStr
    password: str


class CandidateNotificationsClear(CandidateLogin):
    position: str


class OfferResponseRequest(CandidateLogin):
    position: str
    company: str
    decision: Literal["accept", "decline"]


# -------- Job postings --------
class PostingRegistration(BaseModel):
    recruiter_id: LooseStr
    password: str
    salary: LooseStr
    job_description: str
    position: str
    top_candidates: int = Field(..., description="How many of the best ranked candidates receive an offer")


class RecruiterLogin(BaseModel):
    recruiter_id: LooseStr
    password: str


class RecruiterNotificationsClear(RecruiterLogin):
    position: str


class RecruiterDecisionRequest(RecruiterLogin):
    position: str
    candidate_id: LooseStr
    decision: Literal["select", "reject"]


# -------- Reports --------
class UniversityReportRequest(BaseModel):
    university: str


class RankingRebuildRequest(BaseModel):
    position: Optional[str] = None
