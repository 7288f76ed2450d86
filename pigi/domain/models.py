from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

# GitHub restricts owner and repository names to this alphabet.
GITHUB_NAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class Repository(BaseModel):
    """
    Upstream location of a package: a GitHub repository.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(
        min_length=1,
        pattern=GITHUB_NAME_PATTERN,
        description="GitHub user or organisation that owns the repository.",
    )
    name: str = Field(
        min_length=1,
        pattern=GITHUB_NAME_PATTERN,
        description="Repository name under the owner.",
    )


class Asset(BaseModel):
    """
    A file attached to a GitHub release, addressed by its numeric id.
    """

    id: int
    name: str


class Release(BaseModel):
    assets: List[Asset] = Field(default_factory=list)
