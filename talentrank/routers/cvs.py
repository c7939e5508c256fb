import asyncio
from fastapi import APIRouter

from talentrank.models.response import (
    CandidateLoginResponse,
    CandidateResponse,
    CandidateView,
    FeedbackEntry,
    FeedbackResponse,
    MessageResponse,
)
from talentrank.models.schemas import (
    CandidateCVAddition,
    CandidateLogin,
    CandidateNotificationsClear,
    CandidateRegistration,
    OfferResponseRequest,
)
from talentrank.services.pipeline import account_manager, ai_services, profile_builder, store
from talentrank.services.reports import candidate_feedback
from talentrank.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/register", response_model=CandidateResponse)
async def register_candidate(payload: CandidateRegistration):
    """Register a candidate for a position and build their profile"""
    cv_text = payload.resolve_cv()
    loop = asyncio.get_running_loop()
    profile = await loop.run_in_executor(
        None, profile_builder.build_profile, payload.identity(), cv_text, payload.position
    )
    return CandidateResponse(
        message="Candidate registered successfully",
        candidate=CandidateView.from_profile(profile),
    )


@router.post("/cv", response_model=CandidateResponse)
async def add_candidate_cv(payload: CandidateCVAddition):
    """Apply an existing candidate to an additional position"""
    cv_text = payload.resolve_cv()
    loop = asyncio.get_running_loop()
    profile = await loop.run_in_executor(
        None, profile_builder.add_position, payload.candidate_id, payload.password, cv_text, payload.position
    )
    return CandidateResponse(
        message="Candidate CV added for new position successfully",
        candidate=CandidateView.from_profile(profile),
    )


@router.post("/login", response_model=CandidateLoginResponse)
async def login_candidate(payload: CandidateLogin):
    """Return every profile of the candidate with its global rank"""
    loop = asyncio.get_running_loop()
    found = await loop.run_in_executor(None, account_manager.login_candidate, payload.candidate_id, payload.password)
    return CandidateLoginResponse(
        message="Candidate logged in successfully",
        candidates=[CandidateView.from_profile(p, overall_rank=rank) for p, rank in found],
    )


@router.post("/notifications/clear", response_model=MessageResponse)
async def clear_notifications(payload: CandidateNotificationsClear):
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(
        None, account_manager.clear_candidate_notifications, payload.candidate_id, payload.password, payload.position
    )
    return MessageResponse(message="Notifications cleared successfully")


@router.post("/offer_response", response_model=MessageResponse)
async def respond_to_offer(payload: OfferResponseRequest):
    """Accept or decline an offer from a company"""
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(
        None,
        account_manager.offer_response,
        payload.candidate_id,
        payload.password,
        payload.position,
        payload.company,
        payload.decision,
    )
    return MessageResponse(message="Candidate offer response processed successfully")


@router.post("/feedback", response_model=FeedbackResponse)
async def feedback(payload: CandidateLogin):
    """LLM feedback per position, comparing the CV with the best ranked ones"""
    loop = asyncio.get_running_loop()
    found = await loop.run_in_executor(None, account_manager.login_candidate, payload.candidate_id, payload.password)
    profiles = [p for p, _ in found]
    results = await loop.run_in_executor(None, candidate_feedback, ai_services, store, profiles)
    return FeedbackResponse(
        message="Feedback generated successfully",
        feedback={
            p.position: FeedbackEntry(candidate=CandidateView.from_profile(p, overall_rank=rank),
                                      feedback=results.get(p.position, ""))
            for p, rank in found
        },
    )
