from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional

from pigi.domain.models import Repository


class Registry:
    """
    Read-only mapping of package name to the GitHub repository hosting it.

    Lookups are exact: package names are neither normalised nor case-folded.
    """

    def __init__(self, repositories: Mapping[str, Repository]):
        self._repositories = MappingProxyType(dict(repositories))

    def all(self) -> List[str]:
        """Package names, in the order they were declared."""
        return list(self._repositories)

    def get(self, name: str) -> Optional[Repository]:
        return self._repositories.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._repositories

    def __iter__(self) -> Iterator[str]:
        return iter(self._repositories)

    def __len__(self) -> int:
        return len(self._repositories)

    def __repr__(self) -> str:
        return f"Registry({len(self)} packages)"
