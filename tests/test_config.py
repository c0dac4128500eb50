from food_catalog.config import Settings, parse_staples
from food_catalog.services.seeding import DEFAULT_STAPLES
from tests.conftest import FAKE_SUPABASE_KEY


def test_parse_staples() -> None:
    assert parse_staples(" eggs, oats ,, salmon") == ("eggs", "oats", "salmon")
    assert parse_staples(None) == DEFAULT_STAPLES
    assert parse_staples(" , ") == DEFAULT_STAPLES


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", FAKE_SUPABASE_KEY)
    monkeypatch.setenv("ADMIN_TOKEN", "secret")
    monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "2.5")
    monkeypatch.delenv("FDC_API_KEY", raising=False)

    settings = Settings(_env_file=None)

    assert settings.admin_token == "secret"
    assert settings.provider_timeout_seconds == 2.5
    assert settings.fdc_api_key is None
    assert settings.search_limit_max == 50
