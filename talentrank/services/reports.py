import os
from pathlib import Path
from typing import Dict, List

import pandas as pd
from dotenv import load_dotenv

from talentrank.helpers.prompts import FEEDBACK_DOCUMENT, FEEDBACK_PROMPT
from talentrank.models.models import CandidateProfile, JobPosting, RankedCandidate, UniversityReportEntry
from talentrank.services.db import BaseStore, CANDIDATES, GLOBAL_RANKING
from talentrank.services.extraction import AIServices
from talentrank.services.matching import offered_candidates, rank_by_overall, rank_sort_key
from talentrank.utils.exceptions import ValidationError
from talentrank.utils.logging_config import get_logger

load_dotenv()
REPORT_DIR = os.getenv("REPORT_DIR", "")
FEEDBACK_TOP_N = 5

logger = get_logger(__name__)


def report_for_university(store: BaseStore, university: str) -> List[UniversityReportEntry]:
    """All profiles from one university, best global rank first, unranked last."""
    if not university or not university.strip():
        raise ValidationError("University name is required", field="university")

    candidate_data = store.read(CANDIDATES)
    rankings = store.read(GLOBAL_RANKING)

    entries = []
    for position, pool in candidate_data.items():
        for candidate_id, record in pool.items():
            if record.get("university") != university:
                continue
            rank = rankings.get(position, {}).get(candidate_id)
            entries.append(UniversityReportEntry(
                candidate_id=candidate_id,
                position=position,
                name=record.get("name", ""),
                university=university,
                ats=float(record.get("ats") or 0.0),
                overall_similarity=float(record.get("overall_similarity") or 0.0),
                overall_rank=int(rank) if rank is not None else None,
            ))

    entries.sort(key=lambda e: (rank_sort_key(e.overall_rank), e.position, e.candidate_id))
    logger.info(f"University report for {university}: {len(entries)} candidates")
    return entries


def write_posting_report(posting: JobPosting, ranked: List[RankedCandidate], report_dir: str = None):
    """CSV of the full ranking plus a Markdown summary of the offered candidates."""
    report_dir = report_dir or REPORT_DIR
    Path(report_dir).mkdir(parents=True, exist_ok=True)

    offered = set(offered_candidates(ranked, posting.top_candidates))
    data = [{
        "rank": r.rank,
        "candidate_id": r.candidate_id,
        "current_similarity": round(r.current_similarity, 4),
        "overall_similarity": round(r.overall_similarity, 4),
        "decision": "offer" if r.candidate_id in offered else "rejection",
    } for r in ranked]

    df = pd.DataFrame(data, columns=["rank", "candidate_id", "current_similarity", "overall_similarity", "decision"])

    stem = f"{posting.recruiter_id}_{posting.position}".replace(" ", "_").replace("/", "_")
    csv_path = os.path.join(report_dir, f"{stem}_report.csv")
    df.to_csv(csv_path, index=False)

    md_lines = [f"# {posting.position} ({posting.recruiter_id}) - Top Matches", ""]
    top_md = df[df["decision"] == "offer"]
    if len(top_md):
        md_lines += [
            "| Rank | Candidate | Current | Overall |",
            "|---:|---|---:|---:|",
        ]
        for r in top_md.itertuples():
            md_lines.append(
                f"| {r.rank} | {r.candidate_id} | {r.current_similarity:.3f} | {r.overall_similarity:.3f} |"
            )
    else:
        md_lines.append("> No candidates have applied for this position yet.")

    md_path = os.path.join(report_dir, f"{stem}_top.md")
    Path(md_path).write_text("\n".join(md_lines) + "\n", encoding="utf-8")
    logger.info(f"Wrote posting report to {csv_path} and {md_path}")
    return csv_path, md_path


def candidate_feedback(
    services: AIServices, store: BaseStore, profiles: List[CandidateProfile]
) -> Dict[str, str]:
    """Per position, LLM advice comparing the candidate's CV with the top of the pool."""
    candidate_data = store.read(CANDIDATES)
    feedback = {}
    for profile in profiles:
        pool = candidate_data.get(profile.position, {})
        ranked = rank_by_overall((cid, float(rec.get("overall_similarity") or 0.0)) for cid, rec in pool.items())
        top = [pool[cid] for _, cid, _ in ranked[:FEEDBACK_TOP_N]]
        others = "\n\n".join(f"Candidate {i}:\n{rec.get('cv', '')}" for i, rec in enumerate(top, start=1))
        document = FEEDBACK_DOCUMENT.format(cv=profile.cv, count=len(top), others=others)
        feedback[profile.position] = services.complete(FEEDBACK_PROMPT, document)
    return feedback
