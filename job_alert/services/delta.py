from __future__ import annotations

from collections.abc import Iterable
import logging
from typing import Any

from pydantic import ValidationError

from job_alert.schemas.delta import ChangeSet, Triple
from job_alert.services.queries import STATUS_PREDICATE

logger = logging.getLogger(__name__)


def parse_change_sets(payload: Any) -> list[ChangeSet]:
    """Validate a delta-notifier body change-set by change-set.

    A malformed change-set is logged and skipped; the rest of the batch is kept.
    A body that is not a list counts as empty.
    """
    if payload is None:
        return []
    if not isinstance(payload, list):
        logger.warning("ignoring delta payload of type=%s, expected a list", type(payload).__name__)
        return []

    change_sets: list[ChangeSet] = []
    for position, item in enumerate(payload):
        try:
            change_sets.append(ChangeSet.model_validate(item))
        except ValidationError as exc:
            logger.warning("skipping malformed change-set position=%s errors=%s", position, exc.error_count())
    return change_sets


def iter_inserts(change_sets: Iterable[ChangeSet]) -> list[Triple]:
    return [triple for change_set in change_sets for triple in change_set.inserts]


def extract_candidate_jobs(
    change_sets: Iterable[ChangeSet],
    monitored_statuses: Iterable[str],
    *,
    predicate: str = STATUS_PREDICATE,
) -> list[str]:
    statuses = set(monitored_statuses)
    return [
        triple.subject.value
        for triple in iter_inserts(change_sets)
        if triple.predicate.value == predicate and triple.object.value in statuses
    ]
