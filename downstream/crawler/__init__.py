"""Fork graph crawler module."""

from .models import BranchRef, CommitAuthorship, CompareResult, CompareStatus, Page, RepoNode, RepoRef
from .github_client import GitHubClient
from .rate_limit import APIError, RateLimitedClient
from .pager import Pager
from .fork_graph import RepoGraphCrawler

__all__ = [
    "BranchRef",
    "CommitAuthorship",
    "CompareResult",
    "CompareStatus",
    "Page",
    "RepoNode",
    "RepoRef",
    "GitHubClient",
    "APIError",
    "RateLimitedClient",
    "Pager",
    "RepoGraphCrawler",
]
