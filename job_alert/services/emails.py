from __future__ import annotations

from functools import lru_cache

from job_alert.core.config import AlertConfig, get_alert_config
from job_alert.services.queries import build_alert_exists_query, build_insert_email_query
from job_alert.services.records import Email
from job_alert.services.sparql import SparqlClient, get_sparql_client


class EmailRepository:
    def __init__(self, client: SparqlClient, config: AlertConfig) -> None:
        self.client = client
        self.config = config

    async def alert_exists(self, job_uri: str) -> bool:
        if not job_uri:
            return False
        return await self.client.ask(build_alert_exists_query(job_uri, email_graph=self.config.email_graph))

    async def create(self, email: Email) -> Email:
        await self.client.update(build_insert_email_query(email, email_graph=self.config.email_graph))
        return email


@lru_cache
def get_email_repository() -> EmailRepository:
    return EmailRepository(get_sparql_client(), get_alert_config())
