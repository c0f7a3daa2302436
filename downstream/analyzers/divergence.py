"""Classify fork branches by whether they carry work missing upstream.

Each fork branch is compared against the upstream branch of the same name
when one exists, and against the upstream default branch otherwise. The
commits ahead of the base are then inspected for who authored them.

A commit that was rebased before being merged upstream gets a new hash and
is indistinguishable from unmerged work here, so such branches are still
reported as divergent.
"""

from dataclasses import dataclass, field
from enum import Enum

from ..crawler.models import CompareResult, CompareStatus, RepoNode
from ..crawler.pager import Pager
from ..crawler.rate_limit import APIError, RateLimitedClient
from ..log import DiagnosticLog


class Classification(str, Enum):
    """Kind of divergence found on a fork branch."""

    NOT_AHEAD = "not-ahead"
    INTERESTING = "interesting"
    ANONYMOUS_DIVERGENCE = "anonymous-divergence"
    UNATTRIBUTED_DIVERGENCE = "unattributed-divergence"


# (ahead, fork owner made a commit, anonymous commit) -> classification.
# Rules are tried in order; None matches either value.
CLASSIFICATION_RULES: list[tuple[tuple[bool | None, bool | None, bool | None], Classification]] = [
    ((False, None, None), Classification.NOT_AHEAD),
    ((True, True, None), Classification.INTERESTING),
    ((True, False, True), Classification.ANONYMOUS_DIVERGENCE),
    ((True, False, False), Classification.UNATTRIBUTED_DIVERGENCE),
]


def classify(ahead_by: int, owner_made_commit: bool, anonymous_commit: bool) -> Classification:
    """Look up the classification for a comparison's flags."""
    facts = (ahead_by > 0, owner_made_commit, anonymous_commit)
    for pattern, classification in CLASSIFICATION_RULES:
        if all(p is None or p == f for p, f in zip(pattern, facts)):
            return classification
    raise ValueError(f"no classification rule matches {facts}")


def select_base_branch(branch: str, upstream_branches: set[str], default_branch: str) -> str:
    """Same-named upstream branch if there is one, else the default branch."""
    return branch if branch in upstream_branches else default_branch


@dataclass
class BranchResult:
    """Outcome of comparing one fork branch against upstream."""
    upstream: RepoNode
    fork: RepoNode
    branch: str
    base_branch: str
    status: CompareStatus
    ahead_by: int
    behind_by: int
    classification: Classification

    @property
    def base(self) -> str:
        return f"{self.upstream.owner}:{self.base_branch}"

    @property
    def head(self) -> str:
        return f"{self.fork.owner}:{self.branch}"

    @property
    def interesting(self) -> bool:
        return self.classification is Classification.INTERESTING

    def commits_url(self, web_url: str = "https://github.com", by_owner: bool = True) -> str:
        """Browsing URL for the commits on this branch, optionally filtered to the fork owner."""
        url = f"{web_url.rstrip('/')}/{self.fork.owner}/{self.fork.name}/commits/{self.branch}"
        if by_owner:
            url += f"?author={self.fork.owner}"
        return url

    def to_dict(self, web_url: str = "https://github.com") -> dict:
        return {
            "upstream": self.upstream.full_name,
            "fork": self.fork.full_name,
            "branch": self.branch,
            "base": self.base,
            "head": self.head,
            "status": self.status.value,
            "ahead_by": self.ahead_by,
            "behind_by": self.behind_by,
            "classification": self.classification.value,
            "url": self.commits_url(web_url),
        }


@dataclass
class ForkResult:
    """Branch classifications for a single fork."""
    fork: RepoNode
    branches: list[BranchResult] = field(default_factory=list)

    @property
    def interesting_branches(self) -> list[BranchResult]:
        return [b for b in self.branches if b.interesting]

    @property
    def divergent(self) -> bool:
        return bool(self.interesting_branches)


class DivergenceClassifier:
    """Compares every branch of a fork against the upstream repository."""

    def __init__(
        self,
        api,
        client: RateLimitedClient,
        pager: Pager,
        log: DiagnosticLog,
    ):
        self.api = api
        self.client = client
        self.pager = pager
        self.log = log

    def classify_fork(
        self,
        upstream: RepoNode,
        upstream_branches: set[str],
        fork: RepoNode,
    ) -> ForkResult:
        """Classify each branch of ``fork``; branches that fail to compare are skipped."""
        result = ForkResult(fork=fork)
        fork_branches = self.pager.collect(
            lambda page: self.api.list_branches(fork.owner, fork.name, page),
            f"branches of {fork.full_name}",
        )
        for branch in sorted(b.name for b in fork_branches):
            base_branch = select_base_branch(
                branch, upstream_branches, upstream.default_branch
            )
            base = f"{upstream.owner}:{base_branch}"
            head = f"{fork.owner}:{branch}"
            try:
                comparison = self.client.call(
                    lambda: self.api.compare_commits(
                        upstream.owner, upstream.name, base, head
                    ),
                    f"compare {base}...{head}",
                )
            except APIError as e:
                self.log.warn(
                    f"unable to compare head={head} vs base={base}; {e.__cause__ or e}"
                )
                continue
            result.branches.append(
                self._branch_result(upstream, fork, branch, base_branch, comparison)
            )
        return result

    def _branch_result(
        self,
        upstream: RepoNode,
        fork: RepoNode,
        branch: str,
        base_branch: str,
        comparison: CompareResult,
    ) -> BranchResult:
        owner_made_commit = any(
            c.author_login == fork.owner for c in comparison.commits
        )
        anonymous_commit = any(c.anonymous for c in comparison.commits)
        return BranchResult(
            upstream=upstream,
            fork=fork,
            branch=branch,
            base_branch=base_branch,
            status=comparison.status,
            ahead_by=comparison.ahead_by,
            behind_by=comparison.behind_by,
            classification=classify(
                comparison.ahead_by, owner_made_commit, anonymous_commit
            ),
        )
