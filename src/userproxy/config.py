"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the user proxy service.

The service runs with fixed defaults: it listens on port 7000, proxies a
single upstream endpoint, and bounds both the upstream call and the
shutdown wait. Everything lives in one dataclass so tests can shrink the
timeouts without touching the code that uses them.

=============================================================================
CONFIGURATION GROUPS
=============================================================================

    NETWORK      host, port, backlog, buffer_size, timeout
    HTTP         keep_alive, keep_alive_timeout, max_request_size
    UPSTREAM     upstream_url, upstream_timeout
    LIFECYCLE    shutdown_timeout, cleanup_delay
    LOGGING      log_level, log_format

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional


DEFAULT_UPSTREAM_URL = "https://jsonplaceholder.typicode.com/users"


@dataclass
class ServerConfig:
    """
    Configuration for the user proxy service.

    The defaults are the production values. There is no environment or
    command-line override; build a ServerConfig in code to change them:

        ServerConfig(port=0, shutdown_timeout=0.5, cleanup_delay=0.1)
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. All interfaces, like ":7000" in a listen string."""

    port: int = 7000
    """Port to listen on. 0 lets the OS pick one (tests)."""

    backlog: int = 128
    """Maximum number of queued connections before the OS refuses more."""

    buffer_size: int = 8192
    """Receive buffer size in bytes."""

    timeout: Optional[float] = 30.0
    """Socket read timeout for the first request on a connection."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024  # 1 MB, requests carry no body

    # ─────────────────────────────────────────────────────────────────────
    # UPSTREAM SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    upstream_url: str = DEFAULT_UPSTREAM_URL
    """The remote endpoint returning a JSON array of users."""

    upstream_timeout: float = 3.0
    """Client-side timeout for the upstream GET, in seconds."""

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    shutdown_timeout: float = 5.0
    """
    Upper bound on the shutdown wait. When it elapses the process exits
    even if resource cleanup is still running.
    """

    cleanup_delay: float = 3.0
    """
    Duration of the simulated resource release performed on shutdown.
    Stands in for real teardown until real resources are registered.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"  # access log format: "text" or "json"

    server_name: str = "userproxy/1.0"

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails immediately instead of
        in the middle of a shutdown.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.upstream_timeout <= 0:
            raise ValueError("upstream_timeout must be > 0")

        if self.shutdown_timeout <= 0:
            raise ValueError("shutdown_timeout must be > 0")

        if self.cleanup_delay < 0:
            raise ValueError("cleanup_delay must be >= 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}")
