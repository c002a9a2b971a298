"""
Test Filter
Drops formatted events flagged as tests; everything else passes through
unchanged (the same object is returned).
"""
from collections.abc import Mapping
from typing import Iterable, List, Optional, TypeVar, Union

from bugrelay.models.formatted_report import FormattedReport

Event = TypeVar("Event", FormattedReport, Mapping)


def is_test_event(event: Union[FormattedReport, Mapping]) -> bool:
    if isinstance(event, FormattedReport):
        return event.is_test
    if isinstance(event, Mapping):
        return bool(event.get("is_test") or event.get("isTest"))
    return False


def filter_test_event(event: Event) -> Optional[Event]:
    """None when the event is a test, otherwise the event itself."""
    return None if is_test_event(event) else event


def drop_test_reports(events: Iterable[Event]) -> List[Event]:
    return [event for event in events if not is_test_event(event)]
