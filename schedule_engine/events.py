"""Event publishing collaborators for recompute results."""
from abc import ABC, abstractmethod
from typing import Callable, List, Tuple
import logging

from schedule_engine.cpm.models import RecomputeResult

logger = logging.getLogger(__name__)


class EventPublisher(ABC):
    """
    Broadcast a committed RecomputeResult so UIs can refresh.

    Publishing happens after the result has been persisted; speculative
    previews are never published.
    """

    @abstractmethod
    def publish(self, project_id: str, result: RecomputeResult) -> None:
        pass


class NullPublisher(EventPublisher):
    """Discard events."""

    def publish(self, project_id: str, result: RecomputeResult) -> None:
        pass


class InMemoryPublisher(EventPublisher):
    """Collect events in a list (tests, single-process tools)."""

    def __init__(self):
        self.events: List[Tuple[str, RecomputeResult]] = []

    def publish(self, project_id: str, result: RecomputeResult) -> None:
        self.events.append((project_id, result))

    def clear(self) -> None:
        self.events.clear()


class CallbackPublisher(EventPublisher):
    """
    Forward events to a callable.

    Callback failures are logged and not propagated: the schedule has already
    been committed when publish runs.
    """

    def __init__(self, callback: Callable[[str, RecomputeResult], None]):
        self.callback = callback
        self.failures = 0

    def publish(self, project_id: str, result: RecomputeResult) -> None:
        try:
            self.callback(project_id, result)
        except Exception as e:
            self.failures += 1
            logger.error(f'Event callback failed for {project_id}: {str(e)}')
