from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from jinja2 import Environment, FileSystemLoader, select_autoescape

from job_alert.core.config import AlertConfig
from job_alert.services.records import Email, Job, extract_label
from job_alert.services.sparql import format_timestamp


def format_optional_timestamp(value: datetime | None) -> str:
    return format_timestamp(value) if value is not None else ""


def build_subject(job: Job) -> str:
    status_label = (extract_label(job.status) or "").upper()
    operation_label = extract_label(job.operation)
    operation_part = f" | {operation_label}" if operation_label else ""
    return f"[JOB {status_label}] {format_optional_timestamp(job.modified or job.created)}{operation_part}"


class AlertRenderer:
    """Turns a fetched job into a ready-to-persist alert email."""

    def __init__(self, config: AlertConfig, *, template_path: Path | None = None) -> None:
        self.config = config
        path = template_path or config.template_path
        self._env = Environment(
            loader=FileSystemLoader(str(path.parent)),
            autoescape=select_autoescape(default=True),
            keep_trailing_newline=True,
        )
        self._template_name = path.name

    def render_content(self, job: Job) -> str:
        template = self._env.get_template(self._template_name)
        return template.render(**self.template_context(job))

    def template_context(self, job: Job) -> dict[str, Any]:
        return {
            "job_uri": job.uri,
            "job_uuid": job.uuid,
            "status": job.status,
            "status_label": extract_label(job.status) or "",
            "operation": job.operation,
            "operation_label": extract_label(job.operation) or "",
            "created": format_optional_timestamp(job.created),
            "modified": format_optional_timestamp(job.modified),
            "creator": job.creator,
            "tasks": [
                {
                    "uri": task.uri,
                    "uuid": task.uuid,
                    "index": task.index if task.index is not None else "?",
                    "status": task.status,
                    "status_label": extract_label(task.status) or "",
                    "operation": task.operation,
                    "operation_label": extract_label(task.operation) or "",
                    "error": task.error,
                }
                for task in job.tasks
            ],
        }

    def render(self, job: Job, *, now: datetime | None = None) -> Email:
        email_id = str(uuid4())
        return Email(
            uri=f"{self.config.email_base}/{email_id}",
            uuid=email_id,
            folder=self.config.email_folder,
            subject=build_subject(job),
            content=self.render_content(job),
            to=self.config.email_to,
            sender=self.config.email_from,
            creator=self.config.service_uri,
            reference=job.uri,
            created=now or datetime.now(timezone.utc),
        )
