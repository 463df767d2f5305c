"""User-facing warning text for partially dispatched requests."""

from __future__ import annotations

from collections.abc import Sequence


def join_site_names(names: Sequence[str]) -> str:
    """Quote names and join them as "a", "b" and "c"."""
    quoted = [f'"{name}"' for name in names]
    if len(quoted) <= 1:
        return "".join(quoted)
    return ", ".join(quoted[:-1]) + " and " + quoted[-1]


def _sites_phrase(names: Sequence[str]) -> str:
    noun = "sites" if len(names) > 1 else "site"
    return f"{join_site_names(names)} {noun}"


def not_allowed_warning(site_names: Sequence[str]) -> str:
    """Warning for sites excluded from an on-demand resource publish."""
    if not site_names:
        return ""
    return (
        "The default publishing settings do not allow publishing or removing this item for "
        f"{_sites_phrase(site_names)}."
    )


def connection_warning(site_names: Sequence[str]) -> str:
    """Warning for sites whose publishing server could not be reached."""
    if not site_names:
        return ""
    return (
        "Unable to connect to the publishing server for "
        f"{_sites_phrase(site_names)}; the item was not dispatched there."
    )
