from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from job_alert.core.config import AlertConfig
from job_alert.services.records import Email, Job, Resource, Task

FAILED = "http://redpencil.data.gift/id/concept/JobStatus/failed"
SUCCESS = "http://redpencil.data.gift/id/concept/JobStatus/success"
HARVEST_OPERATION = "http://lblod.data.gift/id/jobs/concept/JobOperation/lblodHarvesting"


def make_job(uri: str = "http://data.lblod.info/id/jobs/1", **overrides: Any) -> Job:
    fields: dict[str, Any] = {
        "resource": Resource(uri=uri, uuid=uri.rsplit("/", 1)[-1]),
        "status": FAILED,
        "operation": HARVEST_OPERATION,
        "created": datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc),
        "modified": datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc),
        "creator": None,
        "tasks": (),
    }
    fields.update(overrides)
    return Job(**fields)


def make_task(uri: str, index: int | None, **overrides: Any) -> Task:
    fields: dict[str, Any] = {
        "resource": Resource(uri=uri, uuid=uri.rsplit("/", 1)[-1]),
        "status": FAILED,
        "operation": "http://lblod.data.gift/id/jobs/concept/TaskOperation/collecting",
        "index": index,
    }
    fields.update(overrides)
    return Task(**fields)


class FakeEmailRepository:
    def __init__(self) -> None:
        self.emails: list[Email] = []

    async def alert_exists(self, job_uri: str) -> bool:
        return any(email.reference == job_uri for email in self.emails)

    async def create(self, email: Email) -> Email:
        self.emails.append(email)
        return email


class FakeJobRepository:
    def __init__(self, jobs: list[Job] | None = None) -> None:
        self.jobs = {job.uri: job for job in jobs or []}
        self.fetched: list[str] = []
        self.failing: dict[str, Exception] = {}

    async def fetch_job(self, uri: str) -> Job | None:
        self.fetched.append(uri)
        if uri in self.failing:
            raise self.failing[uri]
        return self.jobs.get(uri)


def with_filters(config: AlertConfig, **changes: Any) -> AlertConfig:
    return replace(config, **changes)
