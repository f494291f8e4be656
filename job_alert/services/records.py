from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Resource:
    uri: str
    uuid: str | None = None


@dataclass(frozen=True, slots=True)
class Task:
    resource: Resource
    status: str | None = None
    operation: str | None = None
    index: int | None = None
    created: datetime | None = None
    modified: datetime | None = None
    error: str | None = None

    @property
    def uri(self) -> str:
        return self.resource.uri

    @property
    def uuid(self) -> str | None:
        return self.resource.uuid


@dataclass(frozen=True, slots=True)
class Job:
    resource: Resource
    status: str | None = None
    operation: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    creator: str | None = None
    tasks: tuple[Task, ...] = field(default_factory=tuple)

    @property
    def uri(self) -> str:
        return self.resource.uri

    @property
    def uuid(self) -> str | None:
        return self.resource.uuid

    @property
    def is_valid(self) -> bool:
        return bool(self.resource.uri) and bool(self.status)


@dataclass(frozen=True, slots=True)
class JobSummary:
    """Row of the jobs-without-alerts scan."""

    uri: str
    uuid: str | None
    status: str | None
    status_label: str | None
    operation: str | None
    operation_label: str | None
    created: datetime | None
    modified: datetime | None
    creator: str | None


@dataclass(frozen=True, slots=True)
class Email:
    uri: str
    uuid: str
    folder: str
    subject: str
    content: str
    to: str
    sender: str
    creator: str
    reference: str
    created: datetime


def extract_label(uri: str | None) -> str | None:
    """Last path segment of a concept URI, e.g. ``.../JobStatus/failed`` -> ``failed``."""
    if not uri:
        return None
    return uri.rsplit("/", maxsplit=1)[-1] or uri
