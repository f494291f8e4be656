from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
import logging

from job_alert.core.config import AlertConfig, get_alert_config
from job_alert.services.jobs import JobRepository, get_job_repository
from job_alert.services.pipeline import AlertPipeline, get_alert_pipeline
from job_alert.services.records import JobSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScanResult:
    found: int
    created: int


@dataclass(frozen=True, slots=True)
class DryRunResult:
    count: int
    jobs: list[JobSummary]


class ScanService:
    """Polls the store for qualifying jobs that have no alert yet.

    Covers deltas that were missed, backfills and manual triggers. The
    returned uris go through the same pipeline as the delta webhook.
    """

    def __init__(self, jobs: JobRepository, pipeline: AlertPipeline, config: AlertConfig) -> None:
        self.jobs = jobs
        self.pipeline = pipeline
        self.config = config

    async def create_alerts_for_pending(
        self,
        since: datetime | None = None,
        statuses: Sequence[str] | None = None,
    ) -> ScanResult:
        statuses = self._resolve_statuses(statuses)
        logger.info("creating alerts for jobs with statuses=%s since=%s", ",".join(statuses), since)

        pending = await self.jobs.fetch_jobs_without_alerts(statuses, since=since)
        uris = list(dict.fromkeys(summary.uri for summary in pending))
        logger.info("found %s job(s) without alerts", len(uris))
        if not uris:
            return ScanResult(found=0, created=0)

        report = await self.pipeline.process(uris)
        return ScanResult(found=len(uris), created=report.created)

    async def dry_run(
        self,
        since: datetime | None = None,
        statuses: Sequence[str] | None = None,
    ) -> DryRunResult:
        statuses = self._resolve_statuses(statuses)
        logger.info("[dry run] scanning for jobs with statuses=%s since=%s", ",".join(statuses), since)

        pending = await self.jobs.fetch_jobs_without_alerts(statuses, since=since)
        # One summary per job, matching the uris the scan would alert on.
        unique: dict[str, JobSummary] = {}
        for summary in pending:
            unique.setdefault(summary.uri, summary)
        jobs = list(unique.values())
        logger.info("[dry run] found %s job(s) without alerts", len(jobs))
        return DryRunResult(count=len(jobs), jobs=jobs)

    def _resolve_statuses(self, statuses: Sequence[str] | None) -> tuple[str, ...]:
        resolved = tuple(status for status in (statuses or ()) if status) or self.config.monitored_statuses
        if not resolved:
            raise ValueError("no job statuses configured to scan for")
        return resolved


@lru_cache
def get_scan_service() -> ScanService:
    return ScanService(get_job_repository(), get_alert_pipeline(), get_alert_config())
