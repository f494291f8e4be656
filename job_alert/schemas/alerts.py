from datetime import datetime

from pydantic import BaseModel, Field


class JobSummaryOut(BaseModel):
    uri: str
    uuid: str | None = None
    status: str | None = None
    status_label: str | None = None
    operation: str | None = None
    operation_label: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    creator: str | None = None


class CreateAlertsOut(BaseModel):
    message: str
    found: int
    created: int


class DryRunOut(BaseModel):
    message: str
    count: int
    jobs: list[JobSummaryOut] = Field(default_factory=list)
