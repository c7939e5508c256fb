# routers/reports.py
import asyncio
from fastapi import APIRouter

from talentrank.models.response import RankingRebuildResponse, RankingResponse, UniversityReport
from talentrank.models.schemas import RankingRebuildRequest, UniversityReportRequest
from talentrank.services.pipeline import posting_service, store
from talentrank.services.reports import report_for_university
from talentrank.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post("/university", response_model=UniversityReport)
async def university_report(payload: UniversityReportRequest):
    """Candidates from one university ordered by global rank"""
    loop = asyncio.get_running_loop()
    entries = await loop.run_in_executor(None, report_for_university, store, payload.university)
    return UniversityReport(
        message="University report generated successfully",
        university=payload.university,
        candidates=entries,
    )


@router.get("/rankings/{position}", response_model=RankingResponse)
async def get_ranking(position: str):
    """Current global ranking of a position"""
    loop = asyncio.get_running_loop()
    ranking = await loop.run_in_executor(None, posting_service.get_global_ranking, position)
    return RankingResponse(position=position, ranking=ranking)


@router.post("/rankings/rebuild", response_model=RankingRebuildResponse)
async def rebuild_rankings(payload: RankingRebuildRequest):
    """Recompute global rankings from the stored candidate similarities"""
    loop = asyncio.get_running_loop()
    rankings = await loop.run_in_executor(None, posting_service.rebuild_global_ranking, payload.position)
    return RankingRebuildResponse(message="Global ranking rebuilt successfully", rankings=rankings)
