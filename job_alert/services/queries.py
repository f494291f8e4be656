"""SPARQL text for the job graph (read-only) and the email graph (write target).

Every interpolated value goes through one of the escape functions in
``job_alert.services.sparql``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from job_alert.services.records import Email
from job_alert.services.sparql import escape_datetime, escape_string, escape_uri

STATUS_PREDICATE = "http://www.w3.org/ns/adms#status"

PREFIXES = """
PREFIX xsd: <http://www.w3.org/2001/XMLSchema#>
PREFIX dcterms: <http://purl.org/dc/terms/>
PREFIX mu: <http://mu.semte.ch/vocabularies/core/>
PREFIX adms: <http://www.w3.org/ns/adms#>
PREFIX cogs: <http://vocab.deri.ie/cogs#>
PREFIX task: <http://redpencil.data.gift/vocabularies/tasks/>
PREFIX nmo: <http://www.semanticdesktop.org/ontologies/2007/03/22/nmo#>
PREFIX nie: <http://www.semanticdesktop.org/ontologies/2007/01/19/nie#>
""".strip()


def _uri_list(values: Iterable[str]) -> str:
    return ", ".join(escape_uri(value) for value in values)


def build_job_query(job_uri: str, *, job_graph: str) -> str:
    job = escape_uri(job_uri)
    return f"""
{PREFIXES}
SELECT ?uuid ?status ?operation ?created ?modified ?creator
WHERE {{
  GRAPH {escape_uri(job_graph)} {{
    {job} a cogs:Job ;
      mu:uuid ?uuid ;
      adms:status ?status .
    OPTIONAL {{ {job} task:operation ?operation . }}
    OPTIONAL {{ {job} dcterms:created ?created . }}
    OPTIONAL {{ {job} dcterms:modified ?modified . }}
    OPTIONAL {{ {job} dcterms:creator ?creator . }}
  }}
}}
"""


def build_tasks_query(job_uri: str, *, job_graph: str) -> str:
    return f"""
{PREFIXES}
SELECT ?uri ?uuid ?status ?operation ?index ?created ?modified ?errorMessage
WHERE {{
  GRAPH {escape_uri(job_graph)} {{
    ?uri a task:Task ;
      mu:uuid ?uuid ;
      dcterms:isPartOf {escape_uri(job_uri)} .
    OPTIONAL {{ ?uri adms:status ?status . }}
    OPTIONAL {{ ?uri task:operation ?operation . }}
    OPTIONAL {{ ?uri task:index ?index . }}
    OPTIONAL {{ ?uri dcterms:created ?created . }}
    OPTIONAL {{ ?uri dcterms:modified ?modified . }}
    OPTIONAL {{
      ?error a task:Error ;
        task:task ?uri ;
        task:message ?errorMessage .
    }}
  }}
}}
ORDER BY ?index
"""


def build_job_filters(
    *,
    statuses: Iterable[str],
    since: datetime | None = None,
    operations: Iterable[str] = (),
    creators: Iterable[str] = (),
) -> list[str]:
    status_values = list(statuses)
    if not status_values:
        raise ValueError("at least one status is required")

    filters = [f"FILTER (?status IN ({_uri_list(status_values)}))"]
    if since is not None:
        filters.append(f"FILTER (?modified >= {escape_datetime(since)})")

    operation_values = list(operations)
    if operation_values:
        filters.append(f"FILTER (?operation IN ({_uri_list(operation_values)}))")

    creator_values = list(creators)
    if creator_values:
        filters.append(f"FILTER (?creator IN ({_uri_list(creator_values)}))")
    return filters


def build_jobs_without_alerts_query(
    *,
    job_graph: str,
    email_graph: str,
    statuses: Iterable[str],
    since: datetime | None = None,
    operations: Iterable[str] = (),
    creators: Iterable[str] = (),
) -> str:
    filters = "\n    ".join(
        build_job_filters(statuses=statuses, since=since, operations=operations, creators=creators)
    )
    return f"""
{PREFIXES}
SELECT DISTINCT ?job ?uuid ?status ?operation ?created ?modified ?creator
WHERE {{
  GRAPH {escape_uri(job_graph)} {{
    ?job a cogs:Job ;
      adms:status ?status .
    OPTIONAL {{ ?job mu:uuid ?uuid . }}
    OPTIONAL {{ ?job task:operation ?operation . }}
    OPTIONAL {{ ?job dcterms:creator ?creator . }}
    OPTIONAL {{ ?job dcterms:created ?created . }}
    OPTIONAL {{ ?job dcterms:modified ?modified . }}
    {filters}
  }}
  FILTER NOT EXISTS {{
    GRAPH {escape_uri(email_graph)} {{
      ?email a nmo:Email ;
        dcterms:references ?job .
    }}
  }}
}}
"""


def build_alert_exists_query(job_uri: str, *, email_graph: str) -> str:
    return f"""
{PREFIXES}
ASK {{
  GRAPH {escape_uri(email_graph)} {{
    ?email a nmo:Email ;
      dcterms:references {escape_uri(job_uri)} .
  }}
}}
"""


def build_insert_email_query(email: Email, *, email_graph: str) -> str:
    return f"""
{PREFIXES}
INSERT DATA {{
  GRAPH {escape_uri(email_graph)} {{
    {escape_uri(email.uri)} a nmo:Email ;
      mu:uuid {escape_string(email.uuid)} ;
      nmo:messageSubject {escape_string(email.subject)} ;
      nmo:htmlMessageContent {escape_string(email.content)} ;
      nmo:emailTo {escape_string(email.to)} ;
      nmo:messageFrom {escape_string(email.sender)} ;
      nie:url {escape_uri(email.folder)} ;
      dcterms:creator {escape_uri(email.creator)} ;
      dcterms:references {escape_uri(email.reference)} ;
      dcterms:created {escape_datetime(email.created)} .
  }}
}}
"""
