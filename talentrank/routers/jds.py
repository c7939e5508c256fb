import asyncio
from fastapi import APIRouter

from talentrank.models.response import MessageResponse, PostingResponse, PostingView, RecruiterLoginResponse
from talentrank.models.schemas import (
    PostingRegistration,
    RecruiterDecisionRequest,
    RecruiterLogin,
    RecruiterNotificationsClear,
)
from talentrank.services.pipeline import account_manager, posting_service
from talentrank.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/register", response_model=PostingResponse)
async def register_job_description(payload: PostingRegistration):
    """Register a job posting and rank every candidate of its position against it"""
    loop = asyncio.get_running_loop()
    posting = await loop.run_in_executor(None, posting_service.register_posting, payload)
    return PostingResponse(
        message="Job description registered successfully",
        job_posting=PostingView.from_posting(posting),
    )


@router.post("/login", response_model=RecruiterLoginResponse)
async def login_recruiter(payload: RecruiterLogin):
    """Return every posting of the recruiter"""
    loop = asyncio.get_running_loop()
    postings = await loop.run_in_executor(None, account_manager.login_recruiter, payload.recruiter_id, payload.password)
    return RecruiterLoginResponse(
        message="Recruiter logged in successfully",
        job_postings=[PostingView.from_posting(p) for p in postings],
    )


@router.post("/decision", response_model=MessageResponse)
async def recruiter_decision(payload: RecruiterDecisionRequest):
    """Select or reject a single candidate"""
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(
        None,
        account_manager.recruiter_decision,
        payload.recruiter_id,
        payload.password,
        payload.position,
        payload.candidate_id,
        payload.decision,
    )
    return MessageResponse(message="Recruiter decision processed successfully")


@router.post("/notifications/clear", response_model=MessageResponse)
async def clear_notifications(payload: RecruiterNotificationsClear):
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(
        None, account_manager.clear_recruiter_notifications, payload.recruiter_id, payload.password, payload.position
    )
    return MessageResponse(message="Recruiter notifications cleared successfully")
