"""Shared test fixtures."""

import io

import pytest
from github import GithubException, RateLimitExceededException
from rich.console import Console

from downstream.crawler.models import (
    BranchRef,
    CommitAuthorship,
    CompareResult,
    CompareStatus,
    Page,
    RepoNode,
    RepoRef,
)
from downstream.crawler.pager import Pager
from downstream.crawler.rate_limit import RateLimitedClient
from downstream.log import DiagnosticLog


def make_node(full_name: str, fork_count: int = 0, default_branch: str = "master") -> RepoNode:
    owner, name = full_name.split("/")
    return RepoNode(ref=RepoRef(owner, name), default_branch=default_branch, fork_count=fork_count)


def quota_error(reset_at: float) -> RateLimitExceededException:
    return RateLimitExceededException(
        403,
        {"message": "API rate limit exceeded"},
        {"x-ratelimit-remaining": "0", "x-ratelimit-reset": str(int(reset_at))},
    )


def server_error() -> GithubException:
    return GithubException(500, {"message": "Server Error"}, {})


class FakeClock:
    """Deterministic clock whose sleep advances time instantly."""

    def __init__(self, now: float = 1_000.0):
        self.now = now
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeGitHubAPI:
    """In-memory stand-in for GitHubClient.

    ``failures`` maps a call key to a list of exceptions raised by
    successive calls before the real answer is returned.
    """

    def __init__(self, per_page: int = 100):
        self.per_page = per_page
        self.repos: dict[str, RepoNode] = {}
        self.branches: dict[str, list[str]] = {}
        self.forks: dict[str, list[RepoNode]] = {}
        self.comparisons: dict[tuple[str, str], CompareResult] = {}
        self.commits: dict[tuple[str, str], list[CommitAuthorship]] = {}
        self.failures: dict[tuple, list[Exception]] = {}
        self.calls: list[tuple] = []
        self.subscriptions: dict[str, bool] = {}

    def add_repo(self, full_name: str, branches=("master",), default_branch="master", forks=()):
        node = make_node(full_name, fork_count=len(forks), default_branch=default_branch)
        self.repos[full_name] = node
        self.branches[full_name] = list(branches)
        self.forks[full_name] = [self.repos[f] for f in forks]
        return node

    def _check(self, key: tuple) -> None:
        self.calls.append(key)
        pending = self.failures.get(key)
        if pending:
            raise pending.pop(0)

    def _page(self, items: list, page: int) -> Page:
        start = (page - 1) * self.per_page
        chunk = items[start:start + self.per_page]
        next_page = page + 1 if start + self.per_page < len(items) else None
        return Page(items=chunk, next_page=next_page)

    def get_repository(self, owner, name):
        self._check(("get_repository", f"{owner}/{name}"))
        try:
            return self.repos[f"{owner}/{name}"]
        except KeyError:
            raise GithubException(404, {"message": "Not Found"}, {})

    def list_branches(self, owner, name, page):
        self._check(("list_branches", f"{owner}/{name}", page))
        names = self.branches.get(f"{owner}/{name}", [])
        return self._page([BranchRef(n) for n in names], page)

    def list_forks(self, owner, name, page):
        self._check(("list_forks", f"{owner}/{name}", page))
        return self._page(self.forks.get(f"{owner}/{name}", []), page)

    def compare_commits(self, owner, name, base, head):
        self._check(("compare_commits", base, head))
        return self.comparisons.get(
            (base, head), CompareResult(status=CompareStatus.IDENTICAL)
        )

    def list_commits(self, owner, name, branch, page):
        self._check(("list_commits", f"{owner}/{name}", branch, page))
        return self._page(self.commits.get((f"{owner}/{name}", branch), []), page)

    def set_subscription(self, owner, name, subscribed):
        self._check(("set_subscription", f"{owner}/{name}"))
        self.subscriptions[f"{owner}/{name}"] = subscribed

    def count(self, method: str) -> int:
        return sum(1 for c in self.calls if c[0] == method)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stderr():
    return io.StringIO()


@pytest.fixture
def log(stderr):
    return DiagnosticLog(Console(file=stderr, width=200, color_system=None))


@pytest.fixture
def client(log, clock):
    return RateLimitedClient(log, margin=0, clock=clock.time, sleep=clock.sleep)


@pytest.fixture
def pager(client, log):
    return Pager(client, log)


@pytest.fixture
def api():
    return FakeGitHubAPI()
