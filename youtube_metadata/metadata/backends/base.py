"""Collaborator protocols for the search and fetch backends."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class SearchBackend(Protocol):
    """Runs a flat, no-download listing and projects each entry through a template."""

    async def search(
        self,
        url: str,
        *,
        playlist_items: str,
        template: str,
        cookie_file: Optional[Path] = None,
    ) -> List[str]:
        """Return one rendered ``template`` line per listed entry.

        Raises:
            BackendError: If the backend fails to list ``url``.
        """
        ...


@runtime_checkable
class FetchBackend(Protocol):
    """Downloads the full info document for a URL and writes it to disk."""

    async def fetch(
        self,
        url: str,
        destination: Path,
        *,
        playlist_items: Optional[str] = None,
        cookie_file: Optional[Path] = None,
    ) -> None:
        """Write the info JSON for ``url`` to ``destination``.

        Raises:
            BackendError: If the backend fails to extract ``url``.
        """
        ...


__all__ = ["FetchBackend", "SearchBackend"]
