import pytest

from huaweicloud_translator.configuration import (
    LEGACY_ALIASES,
    REQUIRED_SETTINGS,
    build_settings,
    get_settings,
    reset_settings_cache,
)
from huaweicloud_translator.errors import TranslatorConfigurationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in (*REQUIRED_SETTINGS, *LEGACY_ALIASES, "TRANSLATOR_DEBUG_INFO"):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


def _set_required(monkeypatch):
    monkeypatch.setenv("HUAWEICLOUD_PROJECT_NAME", "cn-north-4")
    monkeypatch.setenv("HUAWEICLOUD_PROJECT_ID", "project-1")
    monkeypatch.setenv("HUAWEICLOUD_DOMAIN_NAME", "forum-domain")
    monkeypatch.setenv("HUAWEICLOUD_USERNAME", "forum-bot")
    monkeypatch.setenv("HUAWEICLOUD_PASSWORD", "s3cret")


def test_settings_from_environment(monkeypatch, tmp_path):
    _set_required(monkeypatch)
    monkeypatch.setenv("TRANSLATOR_DEBUG_INFO", "yes")

    settings = get_settings(app_dir=tmp_path)

    assert settings.HUAWEICLOUD_PROJECT_NAME == "cn-north-4"
    assert settings.TRANSLATOR_DEBUG_INFO is True
    assert "s3cret" not in repr(settings)


def test_dotenv_values_are_overridden_by_process_environment(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text(
        "HUAWEICLOUD_PROJECT_NAME=ap-southeast-1\n"
        "HUAWEICLOUD_PROJECT_ID=from-dotenv\n"
        "HUAWEICLOUD_DOMAIN_NAME=forum-domain\n"
        "HUAWEICLOUD_USERNAME=forum-bot\n"
        "HUAWEICLOUD_PASSWORD=s3cret\n"
        "UNRELATED=ignored\n"
    )
    monkeypatch.setenv("HUAWEICLOUD_PROJECT_ID", "from-env")

    settings = get_settings(app_dir=tmp_path)

    assert settings.HUAWEICLOUD_PROJECT_NAME == "ap-southeast-1"
    assert settings.HUAWEICLOUD_PROJECT_ID == "from-env"
    assert settings.TRANSLATOR_DEBUG_INFO is False


def test_legacy_credential_names_are_accepted(monkeypatch, tmp_path):
    monkeypatch.setenv("HUAWEICLOUD_PROJECT_NAME", "cn-north-4")
    monkeypatch.setenv("HUAWEICLOUD_PROJECT_ID", "project-1")
    monkeypatch.setenv("SENSITIVE_DOMAIN_NAME", "legacy-domain")
    monkeypatch.setenv("SENSITIVE_NAME", "legacy-user")
    monkeypatch.setenv("SENSITIVE_PASSWORD", "legacy-pass")
    monkeypatch.setenv("HUAWEICLOUD_USERNAME", "current-user")

    settings = get_settings(app_dir=tmp_path)

    assert settings.HUAWEICLOUD_DOMAIN_NAME == "legacy-domain"
    assert settings.HUAWEICLOUD_USERNAME == "current-user"
    assert settings.HUAWEICLOUD_PASSWORD == "legacy-pass"


def test_missing_settings_are_listed(monkeypatch, tmp_path):
    monkeypatch.setenv("HUAWEICLOUD_PROJECT_NAME", "cn-north-4")

    with pytest.raises(TranslatorConfigurationError) as excinfo:
        get_settings(app_dir=tmp_path)

    message = str(excinfo.value)
    assert "HUAWEICLOUD_PROJECT_ID must be provided." in message
    assert "HUAWEICLOUD_PASSWORD must be provided." in message
    assert "HUAWEICLOUD_PROJECT_NAME" not in message


def test_no_configuration_at_all(tmp_path):
    with pytest.raises(TranslatorConfigurationError, match="No configuration sources"):
        get_settings(app_dir=tmp_path)


def test_invalid_boolean_is_rejected():
    with pytest.raises(TranslatorConfigurationError, match="TRANSLATOR_DEBUG_INFO"):
        build_settings({"TRANSLATOR_DEBUG_INFO": "sometimes"}, validate=False)
