from __future__ import annotations

import os

os.environ.setdefault("JOB_ALERT_OTEL_ENABLED", "false")

import pytest

from job_alert.core.config import DEFAULT_TEMPLATE_PATH, AlertConfig

FAILED = "http://redpencil.data.gift/id/concept/JobStatus/failed"


@pytest.fixture
def alert_config() -> AlertConfig:
    return AlertConfig(
        monitored_statuses=(FAILED,),
        operations=(),
        creators=(),
        email_from="noreply@example.org",
        email_to="ops@example.org",
        email_folder="http://data.lblod.info/id/mail-folders/2",
        email_base="http://data.lblod.info/id/emails",
        service_uri="http://lblod.data.gift/services/job-alert-service",
        job_graph="http://mu.semte.ch/graphs/jobs",
        email_graph="http://mu.semte.ch/graphs/system/email",
        template_path=DEFAULT_TEMPLATE_PATH,
        max_concurrency=4,
    )
