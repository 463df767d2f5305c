"""
Target and edition registry ports.

Targets and editions are looked up, never mutated, by the dispatch
component; the only exceptions are on-demand edition creation and clearing
the full-publish-required flag after a successful full publish.
"""

from __future__ import annotations

from typing import Protocol

from sitepublish.domain.entities import Edition, PublishTarget, Site


class TargetRegistryPort(Protocol):
    """Publish target registry."""

    def find_site(self, site_name: str) -> Site | None:
        ...

    def list_sites(self) -> list[Site]:
        ...

    def item_sites(self, content_id: int) -> list[Site]:
        """Sites the item lives in; a page has exactly one."""
        ...

    def site_content(self, site_id: int) -> list[int]:
        """Ids of every item in the site, ascending."""
        ...

    def find_target(self, site_name: str, server_name: str) -> PublishTarget | None:
        """Target by site and (case-insensitive) server name."""
        ...

    def default_target(self, site_id: int) -> PublishTarget | None:
        """The site's default production target."""
        ...

    def staging_target(self, site_id: int) -> PublishTarget | None:
        """The site's staging target, if one is configured."""
        ...

    def check_connectivity(self, target: PublishTarget) -> bool:
        """Whether the target's server is reachable and correctly configured."""
        ...

    def clear_full_publish_required(self, target: PublishTarget) -> None:
        ...


class EditionRegistryPort(Protocol):
    """Edition registry."""

    def find_edition(self, target: PublishTarget, suffix: str) -> Edition | None:
        """Edition bound to the target's server with the given suffix."""
        ...

    def find_site_edition(self, site: Site, suffix: str) -> Edition | None:
        """Edition of the site whose name carries the suffix."""
        ...

    def create_on_demand_edition(self, site: Site, suffix: str) -> Edition:
        ...


class PublishGatePort(Protocol):
    """Licensing / operational gate."""

    def is_publish_allowed(self) -> bool:
        ...
