import base64
import io
import pytest
import requests
from unittest.mock import MagicMock, patch
from docx import Document

from talentrank.helpers.parsing import decode_document
from talentrank.models.settings import PipelineSettings
from talentrank.services.extraction import AIServices, local_cosine
from talentrank.utils.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
    map_to_http_exception,
    retry_on_rate_limit,
)
from talentrank.utils.utils import llm_chat, parse_score, service_cosine, service_embed


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


class TestRetry:
    """Rate-limit retry around upstream calls"""

    @patch("talentrank.utils.exceptions.time.sleep")
    def test_retries_then_succeeds(self, mock_sleep):
        calls = MagicMock(side_effect=[RateLimitError("busy"), RateLimitError("busy"), "ok"])
        wrapped = retry_on_rate_limit(max_retries=2, backoff_seconds=2.0)(calls)

        assert wrapped() == "ok"
        assert calls.call_count == 3
        mock_sleep.assert_called_with(2.0)
        assert mock_sleep.call_count == 2

    @patch("talentrank.utils.exceptions.time.sleep")
    def test_gives_up_after_max_retries(self, mock_sleep):
        calls = MagicMock(side_effect=RateLimitError("busy"))
        wrapped = retry_on_rate_limit(max_retries=2, backoff_seconds=2.0)(calls)

        with pytest.raises(RateLimitError):
            wrapped()
        assert calls.call_count == 3

    @patch("talentrank.utils.exceptions.time.sleep")
    def test_other_errors_are_not_retried(self, mock_sleep):
        calls = MagicMock(side_effect=ExternalServiceError("down"))
        wrapped = retry_on_rate_limit(max_retries=2)(calls)

        with pytest.raises(ExternalServiceError):
            wrapped()
        assert calls.call_count == 1
        mock_sleep.assert_not_called()


class TestHttpClients:
    """Requests-based clients for the LLM and embedding services"""

    @patch("talentrank.utils.utils.requests.post")
    def test_llm_chat_returns_message(self, mock_post):
        mock_post.return_value = _response(payload={"choices": [{"message": {"content": "Python, SQL"}}]})

        assert llm_chat("system", "user") == "Python, SQL"
        payload = mock_post.call_args.kwargs["json"]
        assert payload["messages"][0] == {"role": "system", "content": "system"}
        assert mock_post.call_args.kwargs["timeout"] > 0

    @patch("talentrank.utils.exceptions.time.sleep")
    @patch("talentrank.utils.utils.requests.post")
    def test_llm_chat_retries_on_429(self, mock_post, mock_sleep):
        mock_post.side_effect = [
            _response(429),
            _response(payload={"choices": [{"message": {"content": "ok"}}]}),
        ]

        assert llm_chat("system", "user") == "ok"
        assert mock_post.call_count == 2

    @patch("talentrank.utils.utils.requests.post")
    def test_server_error_is_external_service_error(self, mock_post):
        mock_post.return_value = _response(500)
        with pytest.raises(ExternalServiceError):
            llm_chat("system", "user")

    @patch("talentrank.utils.utils.requests.post")
    def test_connection_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ExternalServiceError):
            service_embed("python")

    @patch("talentrank.utils.utils.requests.post")
    def test_embedding_and_similarity(self, mock_post):
        mock_post.side_effect = [
            _response(payload={"embedding": [1, 2, 3]}),
            _response(payload={"cosine_similarity": 0.75}),
        ]

        assert service_embed("python") == [1.0, 2.0, 3.0]
        assert service_cosine([1.0], [1.0]) == 0.75
        assert mock_post.call_args_list[0].args[0].endswith("/get_embedding")
        assert mock_post.call_args_list[1].kwargs["json"] == {"embedding1": [1.0], "embedding2": [1.0]}


class TestAIServices:
    """Degraded results when collaborators fail"""

    @pytest.mark.parametrize("payload", [
        {"embedding": [None, 1.0]},
        {"embedding": ["high", 1.0]},
        {"embedding": "1.0, 2.0"},
        [0.1, 0.2],
    ])
    @patch("talentrank.utils.utils.requests.post")
    def test_malformed_embedding_reply_is_none(self, mock_post, payload):
        mock_post.return_value = _response()
        mock_post.return_value.json.return_value = payload

        assert AIServices().embed("python") is None

    @patch("talentrank.services.extraction.llm_chat", side_effect=ExternalServiceError("down"))
    def test_extraction_failure_is_empty(self, mock_chat):
        assert AIServices().extract_category("skills?", "cv text", "cv") == ""

    @patch("talentrank.services.extraction.service_embed", side_effect=RateLimitError("busy"))
    def test_embedding_failure_is_none(self, mock_embed):
        assert AIServices().embed("python") is None

    def test_blank_text_is_not_sent(self):
        services = AIServices()
        with patch("talentrank.services.extraction.llm_chat") as mock_chat:
            assert services.score_category("skills", "  ", "Engineer") == 0.0
            mock_chat.assert_not_called()
        assert services.embed("") is None

    @patch("talentrank.services.extraction.llm_chat", return_value="Score: 87.5/100")
    def test_score_is_parsed(self, mock_chat):
        assert AIServices().score_category("skills", "python", "Engineer") == 87.5

    @patch("talentrank.services.extraction.service_cosine", side_effect=ExternalServiceError("down"))
    def test_similarity_failure_is_zero(self, mock_cosine):
        assert AIServices().cosine_similarity([1.0], [1.0]) == 0.0

    def test_similarity_with_missing_vector(self):
        assert AIServices().cosine_similarity(None, [1.0]) == 0.0

    def test_local_backend(self):
        services = AIServices(similarity_backend="local")
        assert services.cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert services.cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_local_cosine_zero_vector(self):
        assert local_cosine([0.0, 0.0], [1.0, 0.0]) == 0.0


class TestParseScore:
    @pytest.mark.parametrize("reply,expected", [
        ("85", 85.0),
        ("The score is 72.5 out of 100", 72.5),
        ("150", 100.0),
        ("-5", 0.0),
        ("no number", 0.0),
        ("", 0.0),
    ])
    def test_parse_score(self, reply, expected):
        assert parse_score(reply) == expected


class TestDecodeDocument:
    """Base64 CV uploads"""

    def test_txt(self):
        encoded = base64.b64encode("Skills:   Python\n\nSQL".encode()).decode()
        assert decode_document(encoded, "cv.txt") == "Skills: Python SQL"

    def test_docx(self):
        doc = Document()
        doc.add_paragraph("Experience: five years")
        buffer = io.BytesIO()
        doc.save(buffer)
        encoded = base64.b64encode(buffer.getvalue()).decode()

        assert decode_document(encoded, "cv.DOCX") == "Experience: five years"

    @pytest.mark.parametrize("b64,filename", [
        ("aGVsbG8=", "cv.exe"),
        ("not base64!!", "cv.txt"),
        (base64.b64encode(b"   ").decode(), "cv.txt"),
        (base64.b64encode(b"not a pdf").decode(), "cv.pdf"),
    ])
    def test_invalid_uploads(self, b64, filename):
        with pytest.raises(ValidationError):
            decode_document(b64, filename)


class TestErrors:
    @pytest.mark.parametrize("exc,status", [
        (ValidationError("bad"), 400),
        (NotFoundError("missing"), 404),
        (RateLimitError("busy"), 429),
        (ConfigurationError("broken"), 500),
        (ExternalServiceError("down"), 502),
    ])
    def test_http_mapping(self, exc, status):
        http_exc = map_to_http_exception(exc)
        assert http_exc.status_code == status
        assert http_exc.detail["message"] == exc.message

    def test_settings_from_env(self):
        env = {"GATE_ZERO_SCORE_SIMILARITY": "false", "ATS_POLICY": "text_length"}
        with patch.dict("os.environ", env):
            settings = PipelineSettings.from_env()
        assert settings.gate_zero_score_similarity is False
        assert settings.ats_policy == "text_length"
        assert settings.dedup_offers_by_recruiter is True

    def test_invalid_settings(self):
        with patch.dict("os.environ", {"ATS_POLICY": "vibes"}):
            with pytest.raises(ConfigurationError):
                PipelineSettings.from_env()
