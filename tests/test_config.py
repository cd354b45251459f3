"""
Test Suite: Settings and Request Validation
"""

import base64

import pytest
from pydantic import ValidationError

from src.intelligence import MetricRequest
from src.utils.config import Settings

CREDENTIAL_VARS = ["DATAFORSEO_LOGIN", "DATAFORSEO_PASSWORD", "DATAFORSEO_BASE64"]


@pytest.fixture
def clean_env(monkeypatch):
    for var in CREDENTIAL_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def encoded(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


class TestSettings:
    """Environment-based settings."""

    def test_login_password_pair(self, clean_env):
        clean_env.setenv("DATAFORSEO_LOGIN", "user@example.com")
        clean_env.setenv("DATAFORSEO_PASSWORD", "secret")

        settings = Settings(_env_file=None)

        assert settings.credentials() == ("user@example.com", "secret")

    def test_base64_takes_precedence(self, clean_env):
        clean_env.setenv("DATAFORSEO_LOGIN", "ignored")
        clean_env.setenv("DATAFORSEO_PASSWORD", "ignored")
        clean_env.setenv("DATAFORSEO_BASE64", encoded("api@example.com:token"))

        assert Settings(_env_file=None).credentials() == ("api@example.com", "token")

    def test_base64_without_separator(self, clean_env):
        clean_env.setenv("DATAFORSEO_BASE64", encoded("nocolon"))

        with pytest.raises(ValueError, match="login:password"):
            Settings(_env_file=None).credentials()

    def test_base64_not_decodable(self, clean_env):
        clean_env.setenv("DATAFORSEO_BASE64", "abc")

        with pytest.raises(ValueError, match="not valid base64"):
            Settings(_env_file=None).credentials()

    def test_missing_credentials(self, clean_env):
        with pytest.raises(ValidationError, match="Missing DataForSEO credentials"):
            Settings(_env_file=None)

    def test_password_alone_is_not_enough(self, clean_env):
        clean_env.setenv("DATAFORSEO_PASSWORD", "secret")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_to_engine_config(self, clean_env):
        clean_env.setenv("DATAFORSEO_BASE64", encoded("api@example.com:token"))
        clean_env.setenv("DATAFORSEO_BASE_URL", "https://sandbox.dataforseo.com/")
        clean_env.setenv("DEFAULT_LOCATION_CODE", "2826")
        clean_env.setenv("MAX_RETRIES", "5")
        clean_env.setenv("REQUEST_TIMEOUT", "60")

        config = Settings(_env_file=None).to_engine_config()

        assert config.login == "api@example.com"
        assert config.password == "token"
        assert config.base_url == "https://sandbox.dataforseo.com"
        assert config.default_location_code == 2826
        assert config.default_language_code == "en"
        assert config.max_retries == 5
        assert config.request_timeout == 60.0


class TestMetricRequest:
    """Request validation."""

    def test_keyword_trimmed(self):
        request = MetricRequest(keyword="  seo tools  ", source="google")
        assert request.keyword == "seo tools"

    @pytest.mark.parametrize("keyword", ["", "   ", "k" * 201])
    def test_keyword_length(self, keyword):
        with pytest.raises(ValidationError):
            MetricRequest(keyword=keyword, source="google")

    def test_keyword_at_limit(self):
        assert len(MetricRequest(keyword="k" * 200, source="google").keyword) == 200

    def test_exactly_one_selector(self):
        with pytest.raises(ValidationError, match="exactly one"):
            MetricRequest(keyword="seo", source="google", sources=["bing"])
        with pytest.raises(ValidationError, match="exactly one"):
            MetricRequest(keyword="seo")

    def test_empty_sources_list(self):
        with pytest.raises(ValidationError):
            MetricRequest(keyword="seo", sources=[])

    def test_unknown_source(self):
        with pytest.raises(ValidationError):
            MetricRequest(keyword="seo", source="yahoo")

    def test_all_expands_in_priority_order(self):
        request = MetricRequest(keyword="seo", sources="all")

        assert request.is_multi_source
        assert request.requested_sources == ["google", "bing"]

    def test_sources_deduplicated_and_ordered(self):
        request = MetricRequest(keyword="seo", sources=["bing", "google", "bing"])
        assert request.requested_sources == ["google", "bing"]

    def test_single_source(self):
        request = MetricRequest(keyword="seo", source="bing")

        assert not request.is_multi_source
        assert request.requested_sources == ["bing"]

    def test_language_normalized(self):
        assert MetricRequest(keyword="seo", source="google", language_code=" EN ").language_code == "en"

    def test_non_positive_location(self):
        with pytest.raises(ValidationError):
            MetricRequest(keyword="seo", source="google", location_code=0)

    def test_frozen(self):
        request = MetricRequest(keyword="seo", source="google")

        with pytest.raises(ValidationError):
            request.keyword = "other"
