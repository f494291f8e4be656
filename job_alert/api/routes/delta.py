import logging

from fastapi import APIRouter, Depends, Request, Response, status

from job_alert.core.config import AlertConfig, get_alert_config
from job_alert.services.background import BackgroundDispatcher, get_dispatcher
from job_alert.services.delta import extract_candidate_jobs, iter_inserts, parse_change_sets
from job_alert.services.pipeline import AlertPipeline, get_alert_pipeline

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", status_code=status.HTTP_204_NO_CONTENT)
async def receive_delta(
    request: Request,
    config: AlertConfig = Depends(get_alert_config),
    pipeline: AlertPipeline = Depends(get_alert_pipeline),
    dispatcher: BackgroundDispatcher = Depends(get_dispatcher),
) -> Response:
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("delta body is not valid JSON; ignoring")
        payload = None

    change_sets = parse_change_sets(payload)
    job_uris = extract_candidate_jobs(change_sets, config.monitored_statuses)
    logger.debug("delta received inserts=%s matching_jobs=%s", len(iter_inserts(change_sets)), job_uris)

    if not job_uris:
        logger.debug("delta did not contain any jobs with a monitored status")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    logger.info("found %s job(s) with monitored status in delta", len(job_uris))
    dispatcher.submit(pipeline.process(job_uris), label="delta-alerts")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
