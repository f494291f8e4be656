from dataclasses import asdict
from datetime import datetime
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from job_alert.schemas.alerts import CreateAlertsOut, DryRunOut, JobSummaryOut
from job_alert.services.scan import ScanService, get_scan_service
from job_alert.services.sparql import SparqlEscapeError, SparqlError, escape_uri, parse_timestamp

router = APIRouter()
logger = logging.getLogger(__name__)


def parse_since(since: str | None = Query(default=None)) -> datetime | None:
    if since is None or not since.strip():
        return None
    parsed = parse_timestamp(since)
    if parsed is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Invalid date format for "since" parameter',
        )
    return parsed


def parse_statuses(statuses: list[str] | None = Query(default=None, alias="status")) -> list[str] | None:
    if not statuses:
        return None
    for value in statuses:
        try:
            escape_uri(value)
        except SparqlEscapeError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return statuses


def _store_failure(action: str, exc: SparqlError) -> HTTPException:
    if isinstance(exc, SparqlEscapeError):
        logger.error("%s failed: invalid uri in service configuration: %s", action, exc)
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    logger.error("%s failed: %s", action, exc)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.post("/create-alerts", response_model=CreateAlertsOut)
async def create_alerts(
    since: datetime | None = Depends(parse_since),
    statuses: list[str] | None = Depends(parse_statuses),
    scan: ScanService = Depends(get_scan_service),
) -> CreateAlertsOut:
    logger.info("manual alert creation triggered since=%s", since.isoformat() if since else None)
    try:
        result = await scan.create_alerts_for_pending(since=since, statuses=statuses)
    except SparqlError as exc:
        raise _store_failure("alert creation", exc) from exc

    return CreateAlertsOut(
        message=f"Created {result.created} alert(s) for {result.found} matching job(s).",
        found=result.found,
        created=result.created,
    )


@router.post("/dry-run", response_model=DryRunOut)
async def dry_run(
    since: datetime | None = Depends(parse_since),
    statuses: list[str] | None = Depends(parse_statuses),
    scan: ScanService = Depends(get_scan_service),
) -> DryRunOut:
    logger.info("dry run triggered since=%s", since.isoformat() if since else None)
    try:
        result = await scan.dry_run(since=since, statuses=statuses)
    except SparqlError as exc:
        raise _store_failure("dry run", exc) from exc

    return DryRunOut(
        message=f"Dry run completed. Found {result.count} job(s) that would receive alerts.",
        count=result.count,
        jobs=[JobSummaryOut(**asdict(summary)) for summary in result.jobs],
    )
