from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "job-alert.html"
FAILED_STATUS = "http://redpencil.data.gift/id/concept/JobStatus/failed"


class Settings(BaseSettings):
    app_name: str = "job-alert-service"
    environment: str = "dev"
    debug: bool = False
    email_from: str = "noreply@example.org"
    email_to: str = "alerts@example.org"
    email_folder: str = "http://data.lblod.info/id/mail-folders/2"
    email_base: str = "http://data.lblod.info/id/emails"
    service_uri: str = "http://lblod.data.gift/services/job-alert-service"
    job_statuses: str = FAILED_STATUS
    job_operations: str = ""
    job_creators: str = ""
    job_graph: str = "http://mu.semte.ch/graphs/jobs"
    email_graph: str = "http://mu.semte.ch/graphs/system/email"
    sparql_endpoint: str = "http://database:8890/sparql"
    sparql_timeout_seconds: float = 30.0
    sparql_sudo: bool = True
    template_path: str | None = None
    max_concurrency: int = 8
    otel_enabled: bool = True
    otel_service_name: str = "job-alert-service"
    otel_exporter_otlp_endpoint: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(
        env_prefix="JOB_ALERT_",
        extra="ignore",
        json_file="/config/config.json",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over the mounted config file.
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def split_uri_list(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(chunk.strip() for chunk in raw.split(",") if chunk.strip())


@dataclass(frozen=True, slots=True)
class AlertConfig:
    """Immutable snapshot of everything the alerting components need."""

    monitored_statuses: tuple[str, ...]
    operations: tuple[str, ...]
    creators: tuple[str, ...]
    email_from: str
    email_to: str
    email_folder: str
    email_base: str
    service_uri: str
    job_graph: str
    email_graph: str
    template_path: Path
    max_concurrency: int

    @classmethod
    def from_settings(cls, settings: Settings) -> AlertConfig:
        return cls(
            monitored_statuses=split_uri_list(settings.job_statuses),
            operations=split_uri_list(settings.job_operations),
            creators=split_uri_list(settings.job_creators),
            email_from=settings.email_from,
            email_to=settings.email_to,
            email_folder=settings.email_folder,
            email_base=settings.email_base.rstrip("/"),
            service_uri=settings.service_uri,
            job_graph=settings.job_graph,
            email_graph=settings.email_graph,
            template_path=Path(settings.template_path) if settings.template_path else DEFAULT_TEMPLATE_PATH,
            max_concurrency=max(1, settings.max_concurrency),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


@lru_cache
def get_alert_config() -> AlertConfig:
    return AlertConfig.from_settings(get_settings())
