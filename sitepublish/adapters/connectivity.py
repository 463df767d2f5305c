"""TCP reachability check for publishing servers."""

from __future__ import annotations

import logging
import socket

from sitepublish.domain.entities import PublishTarget

logger = logging.getLogger(__name__)


class TcpConnectivityCheck:
    """Checks that a target's server accepts TCP connections."""

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        self._timeout = timeout_seconds

    def __call__(self, target: PublishTarget) -> bool:
        # Servers without an address publish to the local filesystem
        if not target.host or not target.port:
            return True
        try:
            with socket.create_connection((target.host, target.port), timeout=self._timeout):
                return True
        except OSError as e:
            logger.warning(
                "Server %s (%s:%d) unreachable: %s",
                target.server_name,
                target.host,
                target.port,
                e,
            )
            return False
