"""
Error types.

Configuration errors abort a whole publish request and are never retried.
Closure non-convergence signals unexpectedly deep or cyclic relationship data.
"""

from __future__ import annotations


class SitePublishError(Exception):
    """Base exception for site publishing errors."""

    pass


class PublishRequestError(SitePublishError):
    """The request itself is malformed (e.g. demand publish without an item)."""

    pass


class UnsupportedPublishTypeError(SitePublishError):
    """A publish type has no edition suffix mapping."""

    def __init__(self, pub_type: object) -> None:
        self.pub_type = pub_type
        super().__init__(f'The request type of publishing: "{pub_type}" is not supported.')


class TargetNotFoundError(SitePublishError):
    """No publish target matches the requested site and server."""

    def __init__(self, site_name: str | None, server_name: str | None) -> None:
        self.site_name = site_name
        self.server_name = server_name
        super().__init__(f'Cannot find server with name "{server_name}" in site "{site_name}".')


class EditionNotFoundError(SitePublishError):
    """No edition is configured for the requested target and publish type."""

    def __init__(self, site_name: str, server_name: str | None, suffix: str) -> None:
        self.site_name = site_name
        self.server_name = server_name
        self.suffix = suffix
        where = f'server "{server_name}"' if server_name else "site"
        super().__init__(
            f'Cannot find edition with type "{suffix}" for {where} in site "{site_name}".'
        )


class ClosureNotConvergedError(SitePublishError):
    """Related-item closure still had work pending when its round budget ran out."""

    def __init__(self, max_rounds: int, pending: int) -> None:
        self.max_rounds = max_rounds
        self.pending = pending
        super().__init__(
            f"Related item closure did not converge within {max_rounds} rounds "
            f"({pending} ids still pending); relationship graph is too deep or cyclic"
        )
