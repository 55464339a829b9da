import pytest

from config.config import DEFAULT_PROFILE_PATH, Config
from config.site_profile import SiteProfile
from models.errors import ConfigError

ENV_KEYS = [
    "MODEL_TYPE",
    "OPENAI_API_KEY",
    "GOOGLE_GEMINI_API_KEY",
    "MAX_DEPTH",
    "MAX_URLS_PER_TIER",
    "MAX_SEARCH_QUERIES_PER_QUESTION",
    "MAX_SEED_PAGES",
    "REQUEST_DELAY_S",
    "CORPUS_MAX_CHARS",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestConfig:
    def test_defaults(self, clean_env):
        config = Config(load_env_file=False)
        budget = config.budget()

        assert config.MODEL_TYPE == "openai"
        assert config.DEFAULT_MODEL == "gpt-4o-mini"
        assert budget.max_depth == 2
        assert budget.max_urls_per_tier == 15
        assert budget.max_search_queries_per_question == 5
        assert budget.request_delay_s == 1.0
        assert budget.corpus_max_chars == 200_000

    def test_env_overrides_budget(self, clean_env):
        clean_env.setenv("MAX_DEPTH", "3")
        clean_env.setenv("REQUEST_DELAY_S", "0.25")

        budget = Config(load_env_file=False).budget()

        assert budget.max_depth == 3
        assert budget.request_delay_s == 0.25

    def test_non_integer_cap_is_config_error(self, clean_env):
        clean_env.setenv("MAX_URLS_PER_TIER", "many")

        with pytest.raises(ConfigError, match="MAX_URLS_PER_TIER"):
            Config(load_env_file=False)

    def test_non_positive_cap_is_config_error(self, clean_env):
        clean_env.setenv("MAX_DEPTH", "0")

        with pytest.raises(ConfigError):
            Config(load_env_file=False).budget()

    def test_validate_reports_missing_key(self, clean_env):
        clean_env.setenv("MODEL_TYPE", "gemini")

        config = Config(load_env_file=False)

        assert config.validate() == ["GOOGLE_GEMINI_API_KEY is not set"]
        assert config.get_model_info().startswith("Google Gemini")

    def test_validate_unknown_backend(self, clean_env):
        clean_env.setenv("MODEL_TYPE", "llama")

        assert "Unknown MODEL_TYPE" in Config(load_env_file=False).validate()[0]


class TestSiteProfile:
    def test_bundled_profile_loads(self):
        profile = SiteProfile.from_yaml(DEFAULT_PROFILE_PATH)

        assert profile.domain
        assert profile.seed_paths
        assert profile.fallback_paths
        assert profile.base_url.startswith("https://")

    def test_seed_urls_are_absolute_unique_and_capped(self):
        profile = SiteProfile.from_dict(
            {
                "base_url": "https://example.org/",
                "seed_paths": ["/about", "about", "clients", "https://example.org/team"],
            }
        )

        assert profile.domain == "example.org"
        assert profile.site_name == "example.org"
        assert profile.seed_urls(10) == [
            "https://example.org/about",
            "https://example.org/clients",
            "https://example.org/team",
        ]
        assert profile.seed_urls(1) == ["https://example.org/about"]

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "profile.yaml"
        path.write_text(
            "site_name: Example\n"
            "base_url: https://example.org\n"
            "follow_link_keywords: [Portal]\n"
            "type_keywords:\n"
            "  external-resource-link: [portal]\n"
            "static_knowledge:\n"
            "  certification-code: ISO 9001\n",
            encoding="utf-8",
        )

        profile = SiteProfile.from_yaml(path)

        assert profile.follow_link_keywords == ("portal",)
        assert profile.type_keywords == {"external-resource-link": ("portal",)}
        assert profile.static_knowledge == {"certification-code": "ISO 9001"}

    @pytest.mark.parametrize(
        "content",
        [
            "- just\n- a list\n",
            "site_name: [unclosed\n",
            "base_url: ftp://example.org\n",
            "base_url: https://example.org\ntype_keywords:\n  phone-number: [tel]\n",
        ],
    )
    def test_invalid_profiles(self, tmp_path, content):
        path = tmp_path / "profile.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigError):
            SiteProfile.from_yaml(path)

    def test_missing_profile(self, tmp_path):
        with pytest.raises(ConfigError):
            SiteProfile.from_yaml(tmp_path / "missing.yaml")
