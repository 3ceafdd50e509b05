from config import DEFAULT_LLM_API_URL, DEFAULT_LLM_MODEL, Settings
from create_tables import create_tables


def test_defaults():
    settings = Settings({})
    assert settings.api_key is None
    assert settings.llm_api_key is None
    assert settings.llm_api_url == DEFAULT_LLM_API_URL
    assert settings.llm_model == DEFAULT_LLM_MODEL
    assert settings.database_url is None
    assert settings.rate_limit_window_seconds == 60
    assert settings.rate_limit_max_requests == 30
    assert settings.allowed_origins_list == ["https://bochat.taptico.com", "https://bochat.manus.space"]
    assert not settings.is_production


def test_environment_overrides():
    settings = Settings({
        "ANTHROPIC_API_KEY": "fallback-key",
        "ALLOWED_ORIGINS": "https://a.example, https://b.example,",
        "RATE_LIMIT_MAX_REQUESTS": "5",
        "LLM_TIMEOUT_SECONDS": "12.5",
        "ENVIRONMENT": "Production",
    })
    assert settings.llm_api_key == "fallback-key"
    assert settings.allowed_origins_list == ["https://a.example", "https://b.example"]
    assert settings.rate_limit_max_requests == 5
    assert settings.llm_timeout_seconds == 12.5
    assert settings.is_production


def test_llm_api_key_wins_over_fallback():
    assert Settings({"LLM_API_KEY": "primary", "ANTHROPIC_API_KEY": "fallback"}).llm_api_key == "primary"


def test_create_tables_is_idempotent(tmp_path):
    url = f"sqlite:///{tmp_path / 'gateway.db'}"
    assert create_tables(url) == {"threads": True, "messages": True}
    assert create_tables(url) == {"threads": True, "messages": True}
