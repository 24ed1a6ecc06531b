import pytest

from flippy.utils.config import load_settings
from flippy.utils.exceptions import ConfigError

SETTINGS_YAML = """
app:
  environment: "${FLIPPY_TEST_ENV:development}"
server:
  port: "${FLIPPY_TEST_PORT:3001}"
database:
  path: "${FLIPPY_TEST_DB}"
auth:
  seed_admin_email: "${FLIPPY_TEST_ADMIN:}"
ai:
  api_key: "${FLIPPY_TEST_TOKEN:}"
"""


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(SETTINGS_YAML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FLIPPY_TEST_ENV", "FLIPPY_TEST_PORT", "FLIPPY_TEST_DB", "FLIPPY_TEST_ADMIN", "FLIPPY_TEST_TOKEN"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_and_substitution(settings_file, monkeypatch, tmp_path):
    monkeypatch.setenv("FLIPPY_TEST_DB", str(tmp_path / "db.sqlite3"))

    settings = load_settings(settings_file)

    assert settings.database.path == str(tmp_path / "db.sqlite3")
    assert settings.server.port == 3001
    assert settings.app.environment == "development"
    assert not settings.is_production
    # empty defaults resolve to None
    assert settings.auth.seed_admin_email is None
    assert settings.ai.api_key is None
    assert settings.auth.session_ttl_days == 7
    assert settings.auth.cookie_name == "session_token"
    assert settings.quota.default_api_calls == 20


def test_env_overrides(settings_file, monkeypatch, tmp_path):
    monkeypatch.setenv("FLIPPY_TEST_DB", str(tmp_path / "db.sqlite3"))
    monkeypatch.setenv("FLIPPY_TEST_ENV", "production")
    monkeypatch.setenv("FLIPPY_TEST_PORT", "8080")
    monkeypatch.setenv("FLIPPY_TEST_TOKEN", "hf_abc")

    settings = load_settings(settings_file)

    assert settings.server.port == 8080
    assert settings.is_production
    assert settings.ai.api_key == "hf_abc"


def test_config_path_from_env(settings_file, monkeypatch, tmp_path):
    monkeypatch.setenv("FLIPPY_TEST_DB", str(tmp_path / "db.sqlite3"))
    monkeypatch.setenv("FLIPPY_CONFIG", str(settings_file))
    assert load_settings().database.path == str(tmp_path / "db.sqlite3")


def test_missing_required_variable(settings_file):
    with pytest.raises(ConfigError, match="FLIPPY_TEST_DB"):
        load_settings(settings_file)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_settings(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("app: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_settings(path)


def test_schema_violation(tmp_path):
    path = tmp_path / "weak.yaml"
    path.write_text(
        f'database:\n  path: "{tmp_path / "db.sqlite3"}"\nauth:\n  bcrypt_rounds: 4\n',
        encoding="utf-8",
    )
    with pytest.raises(ConfigError, match="Invalid settings"):
        load_settings(path)
