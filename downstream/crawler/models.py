"""Shared data models for the fork crawler."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, order=True)
class RepoRef:
    """Owner/name pair identifying a repository."""
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class RepoNode:
    """Repository metadata as fetched from the API."""
    ref: RepoRef
    default_branch: str
    fork_count: int = 0

    @property
    def owner(self) -> str:
        return self.ref.owner

    @property
    def name(self) -> str:
        return self.ref.name

    @property
    def full_name(self) -> str:
        return self.ref.full_name


@dataclass(frozen=True)
class BranchRef:
    """A branch within a repository."""
    name: str


@dataclass(frozen=True)
class CommitAuthorship:
    """Author of a single commit. An empty login means no linked account."""
    author_login: str = ""
    sha: str = ""

    @property
    def anonymous(self) -> bool:
        return not self.author_login


class CompareStatus(str, Enum):
    """Relationship between the head and base of a comparison."""

    IDENTICAL = "identical"
    AHEAD = "ahead"
    BEHIND = "behind"
    DIVERGED = "diverged"


@dataclass
class CompareResult:
    """Result of a base...head comparison."""
    status: CompareStatus
    ahead_by: int = 0
    behind_by: int = 0
    commits: list[CommitAuthorship] = field(default_factory=list)


@dataclass
class Page(Generic[T]):
    """One page of a listing; ``next_page`` is None on the last page."""
    items: list[T]
    next_page: int | None = None
