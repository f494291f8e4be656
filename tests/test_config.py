import pytest

from job_alert.core.config import DEFAULT_TEMPLATE_PATH, AlertConfig, Settings, split_uri_list


def test_split_uri_list_ignores_blanks() -> None:
    assert split_uri_list(" http://a/1 , ,http://a/2,") == ("http://a/1", "http://a/2")
    assert split_uri_list("") == ()
    assert split_uri_list(None) == ()


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JOB_ALERT_EMAIL_TO", "team@example.org")
    monkeypatch.setenv("JOB_ALERT_JOB_CREATORS", "http://example.org/creatorA,http://example.org/creatorB")

    settings = Settings()

    assert settings.email_to == "team@example.org"
    assert AlertConfig.from_settings(settings).creators == (
        "http://example.org/creatorA",
        "http://example.org/creatorB",
    )


def test_alert_config_defaults() -> None:
    config = AlertConfig.from_settings(
        Settings(email_base="http://data.lblod.info/id/emails/", max_concurrency=0, template_path=None)
    )

    assert config.monitored_statuses == ("http://redpencil.data.gift/id/concept/JobStatus/failed",)
    assert config.operations == ()
    assert config.email_base == "http://data.lblod.info/id/emails"
    assert config.max_concurrency == 1
    assert config.template_path == DEFAULT_TEMPLATE_PATH
    assert DEFAULT_TEMPLATE_PATH.is_file()
