from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from job_alert.core.config import AlertConfig
from job_alert.services.alerts import ALERT_EXISTS, AlertResult, AlertService
from job_alert.services.rendering import AlertRenderer, build_subject
from support import FakeEmailRepository, make_job, make_task


def test_subject_uses_status_label_modified_timestamp_and_operation() -> None:
    job = make_job()
    assert build_subject(job) == "[JOB FAILED] 2024-03-01T09:30:00.000Z | lblodHarvesting"


def test_subject_falls_back_to_created_and_omits_missing_operation() -> None:
    job = make_job(modified=None, operation=None)
    assert build_subject(job) == "[JOB FAILED] 2024-03-01T08:00:00.000Z"


def test_render_builds_email_referencing_job(alert_config: AlertConfig) -> None:
    job = make_job(
        tasks=(
            make_task("http://data.lblod.info/id/tasks/a", 0, status="http://example.org/JobStatus/success"),
            make_task("http://data.lblod.info/id/tasks/b", None, error="Timeout <after 30s>"),
        )
    )
    now = datetime(2024, 3, 2, tzinfo=timezone.utc)

    email = AlertRenderer(alert_config).render(job, now=now)

    assert email.reference == job.uri
    assert email.uri == f"{alert_config.email_base}/{email.uuid}"
    assert email.to == "ops@example.org"
    assert email.sender == "noreply@example.org"
    assert email.creator == alert_config.service_uri
    assert email.folder == alert_config.email_folder
    assert email.created == now
    assert job.uri in email.content
    assert "lblodHarvesting" in email.content
    assert "collecting" in email.content
    assert "Timeout &lt;after 30s&gt;" in email.content
    assert "<td>?</td>" in email.content


def test_render_mints_a_new_identifier_per_email(alert_config: AlertConfig) -> None:
    renderer = AlertRenderer(alert_config)
    job = make_job()
    assert renderer.render(job).uuid != renderer.render(job).uuid


def test_create_alert_is_idempotent_per_job(alert_config: AlertConfig) -> None:
    emails = FakeEmailRepository()
    service = AlertService(emails, AlertRenderer(alert_config))
    job = make_job()

    async def run() -> tuple[AlertResult, AlertResult]:
        first = await service.create_alert(job)
        second = await service.create_alert(job)
        return first, second

    first, second = asyncio.run(run())

    assert first.created is True
    assert first.email is not None
    assert second == AlertResult(created=False, reason=ALERT_EXISTS)
    assert [email.reference for email in emails.emails] == [job.uri]


def test_create_alert_for_different_jobs_creates_one_email_each(alert_config: AlertConfig) -> None:
    emails = FakeEmailRepository()
    service = AlertService(emails, AlertRenderer(alert_config))

    async def run() -> None:
        await service.create_alert(make_job("http://data.lblod.info/id/jobs/1"))
        await service.create_alert(make_job("http://data.lblod.info/id/jobs/2"))

    asyncio.run(run())

    assert sorted(email.reference for email in emails.emails) == [
        "http://data.lblod.info/id/jobs/1",
        "http://data.lblod.info/id/jobs/2",
    ]
