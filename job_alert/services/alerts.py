from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging

from opentelemetry import trace

from job_alert.core.config import get_alert_config
from job_alert.services.emails import EmailRepository, get_email_repository
from job_alert.services.records import Email, Job
from job_alert.services.rendering import AlertRenderer

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ALERT_EXISTS = "alert_exists"


@dataclass(frozen=True, slots=True)
class AlertResult:
    created: bool
    email: Email | None = None
    reason: str | None = None


class AlertService:
    def __init__(self, emails: EmailRepository, renderer: AlertRenderer) -> None:
        self.emails = emails
        self.renderer = renderer

    async def create_alert(self, job: Job) -> AlertResult:
        """Write the alert email for ``job`` unless one already references it.

        The existence check and the insert are two separate store calls, so
        concurrent callers for the same job can both pass the check.
        """
        with tracer.start_as_current_span("alert.create") as span:
            span.set_attribute("job.uri", job.uri)
            if await self.emails.alert_exists(job.uri):
                span.set_attribute("alert.created", False)
                return AlertResult(created=False, reason=ALERT_EXISTS)

            email = self.renderer.render(job)
            await self.emails.create(email)
            span.set_attribute("alert.created", True)
            logger.info("alert email created uri=%s job=%s", email.uri, job.uri)
            return AlertResult(created=True, email=email)


@lru_cache
def get_alert_service() -> AlertService:
    return AlertService(get_email_repository(), AlertRenderer(get_alert_config()))
