"""Filter evaluation over resource records.

One implementation serves every kind: records expose ``selection_labels``
(a service's pod selector, everyone else's labels) and ``status`` (pod
phase, deployment readiness, or None for kinds without a status notion).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache
from typing import TypeVar

from kdx.models.filtering import FilterCriteria
from kdx.models.resources import ResourceKind, ResourceRecord
from kdx.observability.logging import get_logger
from kdx.selector import LabelSelector

R = TypeVar("R", bound=ResourceRecord)

_log = get_logger("filtering")


@lru_cache(maxsize=128)
def compile_selector(selector: str) -> LabelSelector:
    """Parse *selector*, memoising successful parses.

    Raises SelectorParseError; failures are not cached.
    """
    return LabelSelector.parse(selector)


class ResourceFilter:
    """Applies FilterCriteria to records of any kind."""

    @staticmethod
    def matches(record: ResourceRecord, criteria: FilterCriteria) -> bool:
        """Return True if *record* passes every configured check.

        Raises SelectorParseError when ``criteria.label_selector`` is
        malformed, rather than letting a typo silently match everything.
        """
        if criteria.label_selector is not None:
            selector = compile_selector(criteria.label_selector)
            labels = record.selection_labels
            if labels is None or not selector.matches(labels):
                return False

        if criteria.status_filter is not None:
            status = record.status
            if status is not None and status != criteria.status_filter:
                return False

        return _matches_age(record, criteria)

    @classmethod
    def filter(cls, records: Iterable[R], criteria: FilterCriteria) -> list[R]:
        """Return the records that match *criteria*, in their original order."""
        if criteria.label_selector is not None:
            # Fail before touching any record if the selector is malformed.
            compile_selector(criteria.label_selector)
        kept = [record for record in records if cls.matches(record, criteria)]
        _log.debug(
            "records_filtered",
            selector=criteria.label_selector,
            status=criteria.status_filter,
            kept=len(kept),
        )
        return kept

    @classmethod
    def filter_by_kind(
        cls,
        records_by_kind: Mapping[ResourceKind, Iterable[ResourceRecord]],
        criteria: FilterCriteria,
    ) -> dict[ResourceKind, list[ResourceRecord]]:
        """Filter a multi-kind collection, dropping kinds the criteria exclude."""
        return {
            kind: cls.filter(records, criteria)
            for kind, records in records_by_kind.items()
            if criteria.includes_kind(kind)
        }


def _matches_age(record: ResourceRecord, criteria: FilterCriteria) -> bool:
    # TODO: compare newer_than/older_than against creationTimestamp once the
    # converters record it; records currently carry only a display age.
    return True
