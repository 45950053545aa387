"""
=============================================================================
PROCESS LIFECYCLE
=============================================================================

Owns the process from bind to exit.

    run()
      │
      ├── server.start()          bind failure ──► CRITICAL, return 1
      ├── arm SIGINT watcher
      │
      │   RUNNING ─────────── listener thread serves requests
      │      │
      │    SIGINT (first one only)
      │      ▼
      │   SHUTTING_DOWN
      │      ├── server.stop()    no new connections
      │      └── cleanup race     whatever is left of shutdown_timeout
      │
      │          cleanup thread               main thread
      │          ──────────────               ───────────
      │          release resources            done.wait(shutdown_timeout)
      │          done.set()  ───────────────► finished on time
      │                                       or timed out ──► cancel.set()
      │      ▼
      └── TERMINATED              restore handlers, return 0

Signals are delivered to the main thread only, so run() must be called
there to react to SIGINT. From any other thread the watcher is not armed
and request_shutdown() is the only way out.

The cleanup thread is a daemon and is never joined: when the bound wins,
the process exits even if a resource is still releasing.

=============================================================================
"""

import logging
import signal
import threading
import time
from enum import Enum
from typing import Optional, Sequence

from .config import ServerConfig
from .core import Resource
from .server import HTTPServer, setup_logging


logger = logging.getLogger(__name__)

# Main-thread wait granularity while RUNNING
SIGNAL_POLL_INTERVAL = 0.5


class LifecycleState(Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class LifecycleManager:
    """
    Runs the server until SIGINT, then shuts down within a bounded time.

        server, resources = create_app(config)
        sys.exit(LifecycleManager(server, resources, config).run())

    Args:
        server: The HTTP server to start and stop.
        resources: Released in order during shutdown.
        config: Supplies shutdown_timeout and log_level.
        signals: Signals that trigger shutdown.
    """

    def __init__(
        self,
        server: HTTPServer,
        resources: Sequence[Resource] = (),
        config: Optional[ServerConfig] = None,
        signals: Sequence[signal.Signals] = (signal.SIGINT,),
    ):
        self.server = server
        self.resources = list(resources)
        self.config = config or server.config
        self.signals = tuple(signals)

        self._state: Optional[LifecycleState] = None
        self._shutdown_requested = threading.Event()
        self._original_handlers: dict = {}
        self._lock = threading.Lock()

    @property
    def state(self) -> Optional[LifecycleState]:
        """None before run() has bound the port."""
        return self._state

    @property
    def shutdown_timeout(self) -> float:
        return self.config.shutdown_timeout

    # =========================================================================
    # RUN
    # =========================================================================

    def run(self) -> int:
        """
        Serve until a shutdown signal, then shut down.

        Returns:
            Exit status: 0 after shutdown (on time or timed out), 1 when
            the port could not be bound.
        """
        setup_logging(self.config.log_level)

        try:
            host, port = self.server.start()
        except OSError as e:
            logger.critical(f"Cannot listen on {self.config.host}:{self.config.port}: {e}")
            return 1

        self._arm_signal_watcher()
        self._set_state(LifecycleState.RUNNING)
        logger.info(f"Serving on {host}:{port}, press Ctrl+C to stop")

        try:
            while not self._shutdown_requested.wait(SIGNAL_POLL_INTERVAL):
                if not self.server.is_serving:
                    logger.critical("Listener stopped unexpectedly")
                    return 1

            self._set_state(LifecycleState.SHUTTING_DOWN)
            # One bound covers the listener stop and the cleanup race
            deadline = time.monotonic() + self.shutdown_timeout
            self.server.stop(timeout=self.shutdown_timeout)
            self.close_resources(max(0.0, deadline - time.monotonic()))
        finally:
            self._disarm_signal_watcher()
            self._set_state(LifecycleState.TERMINATED)

        return 0

    def request_shutdown(self, signum: Optional[int] = None) -> bool:
        """
        Trigger the shutdown sequence.

        Only the first call has an effect; the rest are logged and ignored.

        Returns:
            True if this call triggered the shutdown.
        """
        with self._lock:
            if self._shutdown_requested.is_set():
                if signum is not None:
                    logger.info(f"received sig: {signal.Signals(signum).name}, already shutting down")
                return False
            self._shutdown_requested.set()

        if signum is not None:
            logger.info(f"received sig: {signal.Signals(signum).name}")
        else:
            logger.info("shutdown requested")
        return True

    # =========================================================================
    # CLEANUP RACE
    # =========================================================================

    def close_resources(self, timeout: Optional[float] = None) -> bool:
        """
        Release resources on a cleanup thread, waiting at most timeout
        (shutdown_timeout when omitted) for it.

        Returns:
            True if cleanup finished within the bound.
        """
        done = threading.Event()
        cancel = threading.Event()

        cleanup = threading.Thread(
            target=self._release_all,
            args=(done, cancel),
            name="resource-cleanup",
            daemon=True,
        )
        cleanup.start()

        if timeout is None:
            timeout = self.shutdown_timeout

        if done.wait(timeout):
            logger.info("closing resources has finished on time")
            return True

        cancel.set()
        logger.info("closing resources has timed out")
        return False

    def _release_all(self, done: threading.Event, cancel: threading.Event):
        logger.info("closing resources....")

        for resource in self.resources:
            if cancel.is_set():
                logger.warning(f"Cleanup cancelled before {resource.name}")
                return
            try:
                resource.release(cancel)
            except Exception as e:
                logger.exception(f"Failed to release {resource.name}: {e}")

        if cancel.is_set():
            return

        logger.info("done closing resources....")
        done.set()

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _handle_signal(self, signum, frame):
        self.request_shutdown(signum)

    def _arm_signal_watcher(self):
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal watcher not armed")
            return

        for sig in self.signals:
            self._original_handlers[sig] = signal.signal(sig, self._handle_signal)

    def _disarm_signal_watcher(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def _set_state(self, state: LifecycleState):
        logger.debug(f"Lifecycle: {self._state} -> {state}")
        self._state = state
