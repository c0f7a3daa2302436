"""GitHub API client for fork discovery and branch comparison."""

from github import Auth, Github

from .models import (
    BranchRef,
    CommitAuthorship,
    CompareResult,
    CompareStatus,
    Page,
    RepoNode,
    RepoRef,
)

DEFAULT_BASE_URL = "https://api.github.com"
MAX_PER_PAGE = 100


def _login(user) -> str:
    """Login of a PyGithub user object, or "" for commits without an account."""
    if user is None:
        return ""
    return user.login or ""


class GitHubClient:
    """Client for the GitHub REST API.

    Every method performs exactly one logical request and raises the
    underlying ``GithubException`` on failure. Pages are numbered from 1;
    a full page is taken to mean another page may follow.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        per_page: int = MAX_PER_PAGE,
    ):
        self.per_page = min(per_page, MAX_PER_PAGE)
        auth = Auth.Token(token) if token else None
        # Quota handling is done by RateLimitedClient; PyGithub must not retry.
        self.gh = Github(
            auth=auth,
            base_url=base_url,
            per_page=self.per_page,
            retry=None,
        )

    def _repo(self, owner: str, name: str, lazy: bool = True):
        return self.gh.get_repo(f"{owner}/{name}", lazy=lazy)

    def _next_page(self, page: int, items: list) -> int | None:
        return page + 1 if len(items) >= self.per_page else None

    def _repo_to_node(self, repo) -> RepoNode:
        """Convert a PyGithub repository object to RepoNode."""
        return RepoNode(
            ref=RepoRef(owner=repo.owner.login, name=repo.name),
            default_branch=repo.default_branch or "master",
            fork_count=repo.forks_count or 0,
        )

    def get_repository(self, owner: str, name: str) -> RepoNode:
        return self._repo_to_node(self._repo(owner, name, lazy=False))

    def list_branches(self, owner: str, name: str, page: int) -> Page[BranchRef]:
        branches = self._repo(owner, name).get_branches().get_page(page - 1)
        items = [BranchRef(name=b.name) for b in branches]
        return Page(items=items, next_page=self._next_page(page, items))

    def list_forks(self, owner: str, name: str, page: int) -> Page[RepoNode]:
        forks = self._repo(owner, name).get_forks().get_page(page - 1)
        items = [self._repo_to_node(f) for f in forks]
        return Page(items=items, next_page=self._next_page(page, items))

    def compare_commits(
        self, owner: str, name: str, base: str, head: str
    ) -> CompareResult:
        comparison = self._repo(owner, name).compare(base, head)
        commits = [
            CommitAuthorship(author_login=_login(c.author), sha=c.sha)
            for c in comparison.commits
        ]
        return CompareResult(
            status=CompareStatus(comparison.status),
            ahead_by=comparison.ahead_by,
            behind_by=comparison.behind_by,
            commits=commits,
        )

    def list_commits(
        self, owner: str, name: str, branch: str, page: int
    ) -> Page[CommitAuthorship]:
        commits = self._repo(owner, name).get_commits(sha=branch).get_page(page - 1)
        items = [
            CommitAuthorship(author_login=_login(c.author), sha=c.sha)
            for c in commits
        ]
        return Page(items=items, next_page=self._next_page(page, items))

    def set_subscription(self, owner: str, name: str, subscribed: bool) -> None:
        """Watch or unwatch a repository as the authenticated user."""
        user = self.gh.get_user()
        repo = self._repo(owner, name, lazy=False)
        if subscribed:
            user.add_to_watched(repo)
        else:
            user.remove_from_watched(repo)
