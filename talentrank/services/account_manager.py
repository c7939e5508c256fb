"""
Account Management Service: logins, recruiter decisions, offer responses and
notification counters.
"""
from typing import List, Optional, Tuple

from talentrank.models.models import CandidateProfile, JobPosting
from talentrank.services.credentials import CANDIDATE, RECRUITER, CredentialStore
from talentrank.services.db import BaseStore, CANDIDATES, GLOBAL_RANKING, JOB_DESCRIPTIONS
from talentrank.services.profiles import ProfileBuilder, require_fields
from talentrank.services.ranking import PostingService, add_company_record, record_outcome, selection_notification
from talentrank.utils.exceptions import AuthenticationError, ValidationError
from talentrank.utils.logging_config import get_logger

logger = get_logger(__name__)


class AccountManager:
    """Read and update operations on behalf of an authenticated candidate or recruiter"""

    DECISION_SELECT = "select"
    DECISION_REJECT = "reject"
    RESPONSE_ACCEPT = "accept"
    RESPONSE_DECLINE = "decline"

    def __init__(self, store: BaseStore, profiles: ProfileBuilder, postings: PostingService,
                 credentials: Optional[CredentialStore] = None):
        self.store = store
        self.profiles = profiles
        self.postings = postings
        self.credentials = credentials or CredentialStore(store)

    # -------- Logins --------
    def login_candidate(self, candidate_id: str, password: str) -> List[Tuple[CandidateProfile, Optional[int]]]:
        """All of a candidate's profiles with their current global rank."""
        require_fields(candidate_id=candidate_id, password=password)
        self.credentials.verify(CANDIDATE, candidate_id, password)
        found = self.profiles.profiles_for(candidate_id)
        if not found:
            raise AuthenticationError()
        rankings = self.store.read(GLOBAL_RANKING)
        return [(p, rankings.get(p.position, {}).get(candidate_id)) for p in found]

    def login_recruiter(self, recruiter_id: str, password: str) -> List[JobPosting]:
        require_fields(recruiter_id=recruiter_id, password=password)
        self.credentials.verify(RECRUITER, recruiter_id, password)
        found = self.postings.postings_for(recruiter_id)
        if not found:
            raise AuthenticationError()
        return found

    # -------- Notifications --------
    def clear_candidate_notifications(self, candidate_id: str, password: str, position: str) -> None:
        require_fields(candidate_id=candidate_id, password=password, position=position)
        self.credentials.verify(CANDIDATE, candidate_id, password)
        with self.store.locked(CANDIDATES):
            profile = self.profiles.load_profile(position, candidate_id)
            profile.new_notifications = 0
            self.store.put(CANDIDATES, position, candidate_id, record=profile.model_dump(mode="json"))
        logger.info(f"Cleared notifications for candidate {candidate_id} ({position})")

    def clear_recruiter_notifications(self, recruiter_id: str, password: str, position: str) -> None:
        require_fields(recruiter_id=recruiter_id, password=password, position=position)
        self.credentials.verify(RECRUITER, recruiter_id, password)
        with self.store.locked(JOB_DESCRIPTIONS):
            posting = self.postings.load_posting(position, recruiter_id)
            posting.new_notifications = 0
            self.store.put(JOB_DESCRIPTIONS, position, recruiter_id, record=posting.model_dump(mode="json"))
        logger.info(f"Cleared notifications for recruiter {recruiter_id} ({position})")

    # -------- Decisions --------
    def recruiter_decision(self, recruiter_id: str, password: str, position: str,
                           candidate_id: str, decision: str) -> None:
        """Select or reject one candidate for a recruiter's posting."""
        require_fields(recruiter_id=recruiter_id, password=password, position=position,
                       candidate_id=candidate_id, decision=decision)
        if decision not in (self.DECISION_SELECT, self.DECISION_REJECT):
            raise ValidationError("Decision must be either 'select' or 'reject'", field="decision", value=decision)

        with self.store.locked(CANDIDATES), self.store.locked(JOB_DESCRIPTIONS):
            posting = self.postings.load_posting(position, recruiter_id)
            self.credentials.verify(RECRUITER, recruiter_id, password)
            candidate = self.profiles.load_profile(position, candidate_id)
            snapshot = posting.offer_snapshot()

            if decision == self.DECISION_SELECT:
                if candidate_id not in posting.selected_candidates:
                    posting.selected_candidates.append(candidate_id)
                record_outcome(candidate, snapshot, selected=True, dedup=True)
                candidate.notifications.append(selection_notification(recruiter_id, position))
                candidate.new_notifications += 1
            else:
                if candidate_id not in posting.rejected_candidates:
                    posting.rejected_candidates.append(candidate_id)
                record_outcome(candidate, snapshot, selected=False, dedup=True)

            self.store.put(JOB_DESCRIPTIONS, position, recruiter_id, record=posting.model_dump(mode="json"))
            self.store.put(CANDIDATES, position, candidate_id, record=candidate.model_dump(mode="json"))

        logger.info(f"Recruiter {recruiter_id} chose to {decision} candidate {candidate_id} for {position}")

    def offer_response(self, candidate_id: str, password: str, position: str,
                       company: str, decision: str) -> None:
        """Accept or decline an offer; the offer leaves the available list either way."""
        require_fields(candidate_id=candidate_id, password=password, position=position,
                       company=company, decision=decision)
        if decision not in (self.RESPONSE_ACCEPT, self.RESPONSE_DECLINE):
            raise ValidationError("Decision must be either 'accept' or 'decline'", field="decision", value=decision)

        with self.store.locked(CANDIDATES), self.store.locked(JOB_DESCRIPTIONS):
            candidate = self.profiles.load_profile(position, candidate_id)
            self.credentials.verify(CANDIDATE, candidate_id, password)

            offer = next((o for o in candidate.offers if o.company == company), None)
            if offer is None:
                raise ValidationError("No offer available from the specified company", field="company", value=company)
            posting = self.postings.load_posting(position, company)

            candidate.offers = [o for o in candidate.offers if o.company != company]
            if decision == self.RESPONSE_ACCEPT:
                add_company_record(candidate.accepted_offers, offer, dedup=True)
                if candidate_id not in posting.candidates_accepted:
                    posting.candidates_accepted.append(candidate_id)
                posting.notifications.append(f"Candidate {candidate_id} has accepted your offer.")
            else:
                add_company_record(candidate.declined_offers, offer, dedup=True)
                if candidate_id not in posting.candidates_declined:
                    posting.candidates_declined.append(candidate_id)
                posting.notifications.append(f"Candidate {candidate_id} has declined your offer.")
            posting.new_notifications += 1

            self.store.put(CANDIDATES, position, candidate_id, record=candidate.model_dump(mode="json"))
            self.store.put(JOB_DESCRIPTIONS, position, company, record=posting.model_dump(mode="json"))

        logger.info(f"Candidate {candidate_id} chose to {decision} the offer from {company} for {position}")
