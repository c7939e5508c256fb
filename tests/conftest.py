import os
import tempfile

# Must be set before any talentrank module reads the environment
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("STORE_BACKEND", "json")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="talentrank-test-"))
os.environ.setdefault("SIMILARITY_BACKEND", "local")

import pytest  # noqa: E402

from talentrank.helpers.prompts import QUESTIONS  # noqa: E402
from talentrank.models.settings import PipelineSettings  # noqa: E402
from talentrank.services.account_manager import AccountManager  # noqa: E402
from talentrank.services.credentials import CredentialStore  # noqa: E402
from talentrank.services.db import JsonFileStore  # noqa: E402
from talentrank.services.extraction import AIServices  # noqa: E402
from talentrank.services.profiles import ProfileBuilder  # noqa: E402
from talentrank.services.ranking import PostingService  # noqa: E402

_CATEGORY_BY_QUESTION = {q: c for questions in QUESTIONS.values() for c, q in questions.items()}
EMBED_DIM = 16


def make_document(**sections) -> str:
    """Build a test document of 'category: words' lines."""
    return "\n".join(f"{category}: {words}" for category, words in sections.items())


class FakeAIServices(AIServices):
    """Deterministic collaborators for tests.

    Extraction reads ``category: words`` lines, embeddings are bag-of-words
    vectors hashed by character sum, and a category scores 10 points per word.
    """

    def __init__(self):
        super().__init__(similarity_backend="local")
        self.completions = []

    def extract_category(self, instruction, source_text, document_kind):
        category = _CATEGORY_BY_QUESTION.get(instruction)
        for line in source_text.splitlines():
            label, _, rest = line.partition(":")
            if label.strip().lower() == category:
                return rest.strip()
        return ""

    def complete(self, instruction, source_text):
        self.completions.append(source_text)
        return "Highlight cloud projects and quantify your impact."

    def embed(self, text):
        if not text or not text.strip():
            return None
        vector = [0.0] * EMBED_DIM
        for word in text.lower().split():
            vector[sum(map(ord, word)) % EMBED_DIM] += 1.0
        return vector

    def score_category(self, category, category_text, position):
        return float(min(100, 10 * len(category_text.split())))


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(str(tmp_path / "data"))


@pytest.fixture
def ai_services():
    return FakeAIServices()


@pytest.fixture
def settings():
    return PipelineSettings()


@pytest.fixture
def credentials(store):
    return CredentialStore(store)


@pytest.fixture
def profile_builder(store, ai_services, settings, credentials):
    return ProfileBuilder(store, ai_services, settings, credentials)


@pytest.fixture
def posting_service(store, ai_services, settings, credentials):
    return PostingService(store, ai_services, settings, credentials)


@pytest.fixture
def account_manager(store, profile_builder, posting_service, credentials):
    return AccountManager(store, profile_builder, posting_service, credentials)
