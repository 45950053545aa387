"""
=============================================================================
SHUTDOWN RESOURCES
=============================================================================

Things that must be released when the process shuts down.

Every resource exposes release(cancel). The lifecycle manager runs all
registered resources in order on a cleanup thread and races that thread
against the shutdown timeout. When the timeout wins, the cancel event is
set; a resource that can stop early (a long drain, a flush loop) should
check it and return.

    class FlushQueue(Resource):
        name = "event queue"

        def release(self, cancel):
            while self.queue and not cancel.is_set():
                self.flush_one()

=============================================================================
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable


logger = logging.getLogger(__name__)


class Resource(ABC):
    """A resource released during graceful shutdown."""

    name: str = "resource"

    @abstractmethod
    def release(self, cancel: threading.Event) -> None:
        """
        Release the resource.

        Args:
            cancel: Set when the shutdown bound has elapsed. Long-running
                    releases should return soon after it is set.
        """


class ClosingResource(Resource):
    """
    Adapts a zero-argument close function, e.g. UpstreamClient.close.

    Closing is assumed to be quick, so the cancel event is not consulted.
    """

    def __init__(self, name: str, close: Callable[[], None]):
        self.name = name
        self._close = close

    def release(self, cancel: threading.Event) -> None:
        self._close()


class SimulatedRelease(Resource):
    """
    Placeholder teardown that takes a fixed amount of time.

    Stands in for releasing connections or files until real resources are
    registered. The wait is cut short when the cancel event is set.
    """

    name = "simulated release"

    def __init__(self, delay: float = 3.0):
        self.delay = delay

    def release(self, cancel: threading.Event) -> None:
        if cancel.wait(self.delay):
            logger.info(f"{self.name} interrupted after shutdown timeout")
