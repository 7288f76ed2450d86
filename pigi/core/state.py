from __future__ import annotations

from dataclasses import dataclass

from pigi.core.config import Settings
from pigi.domain.entities import Registry


@dataclass(frozen=True)
class AppState:
    """
    Read-only context shared by every request.

    Built once by ``create_app()`` before the server starts accepting
    connections and never mutated afterwards.
    """

    settings: Settings
    registry: Registry
