from typing import Dict, List, Optional

from talentrank.models.models import CandidateProfile
from talentrank.models.schemas import CandidateIdentity
from talentrank.models.settings import PipelineSettings
from talentrank.services.credentials import CANDIDATE, CredentialStore
from talentrank.services.db import BaseStore, CANDIDATES
from talentrank.services.extraction import AIServices
from talentrank.services.graph import SignalPipeline
from talentrank.services.matching import compute_ats
from talentrank.utils.exceptions import ConflictError, NotFoundError, ValidationError
from talentrank.utils.logging_config import get_logger

logger = get_logger(__name__)


def require_fields(**fields) -> None:
    """Raise ValidationError naming every blank or missing field."""
    missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", field=missing[0])


class ProfileBuilder:
    """Builds and stores one CandidateProfile per (position, candidate_id)."""

    def __init__(
        self,
        store: BaseStore,
        services: AIServices,
        settings: PipelineSettings,
        credentials: Optional[CredentialStore] = None,
    ):
        self.store = store
        self.settings = settings
        self.credentials = credentials or CredentialStore(store)
        self.pipeline = SignalPipeline(services)

    def build_profile(self, identity: CandidateIdentity, cv_text: str, position: str) -> CandidateProfile:
        require_fields(
            candidate_id=identity.candidate_id,
            name=identity.name,
            university=identity.university,
            salary=identity.salary,
            password=identity.password,
            cv=cv_text,
            position=position,
        )
        self.credentials.ensure(CANDIDATE, identity.candidate_id, identity.password)
        self._check_not_registered(position, identity.candidate_id)

        logger.info(f"Building profile for candidate {identity.candidate_id} ({position})")
        signals = self.pipeline.run(cv_text, "cv", position)

        profile = CandidateProfile(
            candidate_id=identity.candidate_id,
            name=identity.name,
            university=identity.university,
            salary=identity.salary,
            cv=cv_text,
            position=position,
            ats=compute_ats(signals, self.settings.ats_policy),
            **signals,
        )

        with self.store.locked(CANDIDATES):
            # The pipeline ran unlocked; another request may have won the key meanwhile
            self._check_not_registered(position, identity.candidate_id)
            self.store.put(CANDIDATES, position, identity.candidate_id, record=profile.model_dump(mode="json"))

        logger.info(
            f"Registered candidate {identity.candidate_id} for {position} with ATS {profile.ats:.2f}"
        )
        return profile

    def add_position(self, candidate_id: str, password: str, cv_text: str, position: str) -> CandidateProfile:
        """Apply an already registered candidate to another position."""
        require_fields(candidate_id=candidate_id, password=password, cv=cv_text, position=position)
        self.credentials.verify(CANDIDATE, candidate_id, password)

        existing = self.profiles_for(candidate_id)
        if not existing:
            raise NotFoundError("Candidate has no existing profile", resource="candidate", key=candidate_id)
        first = existing[0]

        identity = CandidateIdentity(
            candidate_id=candidate_id,
            name=first.name,
            university=first.university,
            salary=first.salary,
            password=password,
        )
        return self.build_profile(identity, cv_text, position)

    def profiles_for(self, candidate_id: str) -> List[CandidateProfile]:
        """Every profile of one candidate, in store order."""
        found = []
        for position, pool in self.store.scan(CANDIDATES).items():
            record = pool.get(candidate_id) if isinstance(pool, dict) else None
            if record:
                found.append(CandidateProfile(**record))
        return found

    def load_profile(self, position: str, candidate_id: str) -> CandidateProfile:
        record = self.store.get(CANDIDATES, position, candidate_id)
        if not record:
            raise NotFoundError(
                "Candidate not found for the given position", resource="candidate", key=f"{position}/{candidate_id}"
            )
        return CandidateProfile(**record)

    def load_pool(self, position: str) -> Dict[str, CandidateProfile]:
        return {cid: CandidateProfile(**record) for cid, record in self.store.scan(CANDIDATES, position).items()}

    def _check_not_registered(self, position: str, candidate_id: str) -> None:
        if self.store.get(CANDIDATES, position, candidate_id) is not None:
            raise ConflictError(
                "Candidate has already applied for this position",
                resource="candidate",
                key=f"{position}/{candidate_id}",
            )
