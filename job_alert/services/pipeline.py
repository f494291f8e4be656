from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from functools import lru_cache
import logging
from typing import TypeVar

from opentelemetry import trace

from job_alert.core.config import AlertConfig, get_alert_config
from job_alert.services.alerts import AlertResult, AlertService, get_alert_service
from job_alert.services.jobs import JobRepository, filter_jobs, get_job_repository
from job_alert.services.records import Job

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(slots=True)
class PipelineReport:
    requested: int = 0
    fetched: int = 0
    eligible: int = 0
    created: int = 0
    already_alerted: int = 0
    failed: int = 0


class AlertPipeline:
    """fetch -> filter -> create for a batch of job URIs.

    Work per job is isolated: a failure for one job is logged and counted,
    never raised to the caller.
    """

    def __init__(self, jobs: JobRepository, alerts: AlertService, config: AlertConfig) -> None:
        self.jobs = jobs
        self.alerts = alerts
        self.config = config

    async def process(self, uris: Iterable[str]) -> PipelineReport:
        unique_uris = list(dict.fromkeys(uri for uri in uris if uri))
        report = PipelineReport(requested=len(unique_uris))
        if not unique_uris:
            logger.info("no job uris to process")
            return report

        with tracer.start_as_current_span("alert.pipeline.process") as span:
            span.set_attribute("jobs.requested", report.requested)
            logger.info("processing %s job uri(s)", report.requested)

            fetched = await self._run_bounded(unique_uris, self._fetch_one)
            report.fetched = sum(1 for job in fetched if job is not None)

            jobs = filter_jobs(fetched, self.config)
            report.eligible = len(jobs)
            if not jobs:
                logger.info("no jobs of interest left after filtering")
                return report

            logger.info("creating alerts for %s job(s)", len(jobs))
            results = await self._run_bounded(jobs, self._create_one)
            for result in results:
                if result is None:
                    report.failed += 1
                elif result.created:
                    report.created += 1
                else:
                    report.already_alerted += 1

            span.set_attribute("alerts.created", report.created)
            span.set_attribute("alerts.failed", report.failed)

        if report.created:
            logger.info("created %s alert(s)", report.created)
        if report.failed:
            logger.warning("failed to create %s alert(s)", report.failed)
        return report

    async def _fetch_one(self, uri: str) -> Job | None:
        try:
            job = await self.jobs.fetch_job(uri)
        except Exception:
            logger.warning("failed to fetch job uri=%s", uri, exc_info=True)
            return None
        if job is None:
            logger.warning("job not found uri=%s", uri)
        return job

    async def _create_one(self, job: Job) -> AlertResult | None:
        try:
            result = await self.alerts.create_alert(job)
        except Exception:
            logger.exception("error creating alert for job=%s", job.uri)
            return None
        if not result.created:
            logger.info("skipped: alert already exists for job=%s", job.uri)
        return result

    async def _run_bounded(self, items: list[T], func: Callable[[T], Awaitable[R]]) -> list[R]:
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def run_one(item: T) -> R:
            async with semaphore:
                return await func(item)

        return await asyncio.gather(*(run_one(item) for item in items))


@lru_cache
def get_alert_pipeline() -> AlertPipeline:
    return AlertPipeline(get_job_repository(), get_alert_service(), get_alert_config())
