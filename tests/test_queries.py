from datetime import datetime, timezone

import pytest

from job_alert.services.queries import (
    build_alert_exists_query,
    build_insert_email_query,
    build_job_filters,
    build_jobs_without_alerts_query,
)
from job_alert.services.records import Email
from job_alert.services.sparql import SparqlEscapeError

FAILED = "http://redpencil.data.gift/id/concept/JobStatus/failed"


def test_job_filters_only_status_by_default() -> None:
    assert build_job_filters(statuses=[FAILED]) == [f"FILTER (?status IN (<{FAILED}>))"]


def test_job_filters_require_a_status() -> None:
    with pytest.raises(ValueError):
        build_job_filters(statuses=[])


def test_jobs_without_alerts_query_applies_filters_before_anti_join() -> None:
    query = build_jobs_without_alerts_query(
        job_graph="http://mu.semte.ch/graphs/jobs",
        email_graph="http://mu.semte.ch/graphs/system/email",
        statuses=[FAILED],
        since=datetime(2024, 1, 1, tzinfo=timezone.utc),
        operations=["http://example.org/operationA"],
        creators=["http://example.org/creatorA"],
    )

    assert "SELECT DISTINCT ?job" in query
    assert f"FILTER (?status IN (<{FAILED}>))" in query
    assert 'FILTER (?modified >= "2024-01-01T00:00:00.000Z"^^<http://www.w3.org/2001/XMLSchema#dateTime>)' in query
    assert "FILTER (?operation IN (<http://example.org/operationA>))" in query
    assert "FILTER (?creator IN (<http://example.org/creatorA>))" in query
    assert query.index("FILTER (?creator") < query.index("FILTER NOT EXISTS")
    assert "GRAPH <http://mu.semte.ch/graphs/system/email>" in query
    assert "dcterms:references ?job" in query


def test_jobs_without_alerts_query_rejects_unsafe_status_values() -> None:
    with pytest.raises(SparqlEscapeError):
        build_jobs_without_alerts_query(
            job_graph="http://mu.semte.ch/graphs/jobs",
            email_graph="http://mu.semte.ch/graphs/system/email",
            statuses=["http://example.org/x> } DROP ALL #"],
        )


def test_alert_exists_query_is_an_ask_on_the_email_graph() -> None:
    query = build_alert_exists_query("http://data.lblod.info/id/jobs/1", email_graph="http://example.org/g/email")
    assert "ASK" in query
    assert "GRAPH <http://example.org/g/email>" in query
    assert "dcterms:references <http://data.lblod.info/id/jobs/1>" in query


def test_insert_email_query_escapes_html_content() -> None:
    email = Email(
        uri="http://data.lblod.info/id/emails/abc",
        uuid="abc",
        folder="http://data.lblod.info/id/mail-folders/2",
        subject="[JOB FAILED] 2024-03-01T09:30:00.000Z",
        content='<p class="x">line one\nline two</p>',
        to="ops@example.org",
        sender="noreply@example.org",
        creator="http://lblod.data.gift/services/job-alert-service",
        reference="http://data.lblod.info/id/jobs/1",
        created=datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
    )

    query = build_insert_email_query(email, email_graph="http://mu.semte.ch/graphs/system/email")

    assert "INSERT DATA" in query
    assert '<http://data.lblod.info/id/emails/abc> a nmo:Email' in query
    assert 'nmo:htmlMessageContent "<p class=\\"x\\">line one\\nline two</p>"' in query
    assert "dcterms:references <http://data.lblod.info/id/jobs/1>" in query
    assert '"2024-03-01T10:00:00.000Z"^^<http://www.w3.org/2001/XMLSchema#dateTime>' in query
