"""
Shared service instances used by the routers.
"""
from talentrank.models.settings import PipelineSettings
from talentrank.services.account_manager import AccountManager
from talentrank.services.credentials import CredentialStore
from talentrank.services.db import create_store
from talentrank.services.extraction import create_ai_services
from talentrank.services.profiles import ProfileBuilder
from talentrank.services.ranking import PostingService
from talentrank.services.reports import REPORT_DIR, write_posting_report
from talentrank.utils.logging_config import get_logger

logger = get_logger(__name__)

settings = PipelineSettings.from_env()
store = create_store()
ai_services = create_ai_services()
credentials = CredentialStore(store)

profile_builder = ProfileBuilder(store, ai_services, settings, credentials)
posting_service = PostingService(
    store,
    ai_services,
    settings,
    credentials,
    report_writer=write_posting_report if REPORT_DIR else None,
)
account_manager = AccountManager(store, profile_builder, posting_service, credentials)

logger.info(f"Pipeline ready with settings: {settings.model_dump()}")
