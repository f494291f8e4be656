from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from functools import lru_cache
import logging
from typing import Any

from job_alert.core.config import AlertConfig, get_alert_config
from job_alert.services.queries import (
    build_job_query,
    build_jobs_without_alerts_query,
    build_tasks_query,
)
from job_alert.services.records import Job, JobSummary, Resource, Task, extract_label
from job_alert.services.sparql import SparqlClient, get_sparql_client

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base repository error."""


class MultipleJobsFoundError(RepositoryError):
    """Raised when one job URI resolves to more than one job row upstream."""


class JobRepository:
    def __init__(self, client: SparqlClient, config: AlertConfig) -> None:
        self.client = client
        self.config = config

    async def fetch_job(self, uri: str) -> Job | None:
        if not uri:
            raise ValueError("job uri is required")

        rows = await self.client.select(build_job_query(uri, job_graph=self.config.job_graph))
        if not rows:
            return None
        if len(rows) > 1:
            raise MultipleJobsFoundError(f"multiple jobs found for uri <{uri}>")

        row = rows[0]
        tasks = await self.fetch_tasks(uri)
        return Job(
            resource=Resource(uri=uri, uuid=_as_text(row.get("uuid"))),
            status=_as_text(row.get("status")),
            operation=_as_text(row.get("operation")),
            created=_as_datetime(row.get("created")),
            modified=_as_datetime(row.get("modified")),
            creator=_as_text(row.get("creator")),
            tasks=tuple(tasks),
        )

    async def fetch_tasks(self, job_uri: str) -> list[Task]:
        rows = await self.client.select(build_tasks_query(job_uri, job_graph=self.config.job_graph))
        # The error join yields one row per task:Error; fold them back into one task.
        grouped: dict[str, dict[str, Any]] = {}
        errors: dict[str, list[str]] = {}
        for row in rows:
            uri = row.get("uri")
            if not uri:
                continue
            grouped.setdefault(uri, row)
            message = _as_text(row.get("errorMessage"))
            if message and message not in errors.setdefault(uri, []):
                errors[uri].append(message)

        return [
            Task(
                resource=Resource(uri=uri, uuid=_as_text(row.get("uuid"))),
                status=_as_text(row.get("status")),
                operation=_as_text(row.get("operation")),
                index=row.get("index") if isinstance(row.get("index"), int) else None,
                created=_as_datetime(row.get("created")),
                modified=_as_datetime(row.get("modified")),
                error="\n".join(errors.get(uri, ())) or None,
            )
            for uri, row in grouped.items()
        ]

    async def fetch_jobs_without_alerts(
        self,
        statuses: Iterable[str],
        since: datetime | None = None,
    ) -> list[JobSummary]:
        query = build_jobs_without_alerts_query(
            job_graph=self.config.job_graph,
            email_graph=self.config.email_graph,
            statuses=statuses,
            since=since,
            operations=self.config.operations,
            creators=self.config.creators,
        )
        rows = await self.client.select(query)
        return [
            JobSummary(
                uri=row["job"],
                uuid=_as_text(row.get("uuid")),
                status=_as_text(row.get("status")),
                status_label=extract_label(_as_text(row.get("status"))),
                operation=_as_text(row.get("operation")),
                operation_label=extract_label(_as_text(row.get("operation"))),
                created=_as_datetime(row.get("created")),
                modified=_as_datetime(row.get("modified")),
                creator=_as_text(row.get("creator")),
            )
            for row in rows
            if row.get("job")
        ]


def filter_jobs(jobs: Iterable[Job | None], config: AlertConfig) -> list[Job]:
    candidates = list(jobs)
    filtered = [job for job in candidates if job is not None and job.is_valid]
    invalid = len(candidates) - len(filtered)
    if invalid:
        logger.warning("ignoring %s job(s): not found, not a job, or missing status", invalid)

    if config.creators:
        before = len(filtered)
        filtered = [job for job in filtered if job.creator in config.creators]
        if before - len(filtered):
            logger.info("filtered out %s job(s) not matching configured creators", before - len(filtered))

    if config.operations:
        before = len(filtered)
        filtered = [job for job in filtered if job.operation in config.operations]
        if before - len(filtered):
            logger.info("filtered out %s job(s) not matching configured operations", before - len(filtered))

    return filtered


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    return str(value)


def _as_datetime(value: Any) -> datetime | None:
    return value if isinstance(value, datetime) else None


@lru_cache
def get_job_repository() -> JobRepository:
    return JobRepository(get_sparql_client(), get_alert_config())
