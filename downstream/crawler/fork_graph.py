"""Breadth-first discovery of every fork of a repository."""

from collections import deque

from ..log import DiagnosticLog
from .models import BranchRef, RepoNode, RepoRef
from .pager import Pager
from .rate_limit import RateLimitedClient


class RepoGraphCrawler:
    """Walks "is a fork of" edges from a root repository.

    Each repository's fork list is fetched at most once, even when the
    repository is reachable along several edges or the data contains cycles.
    """

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

    def get_repository(self, ref: RepoRef) -> RepoNode:
        """Fetch repository metadata; raises APIError on failure."""
        return self.client.call(
            lambda: self.api.get_repository(ref.owner, ref.name),
            f"get repository {ref}",
        )

    def get_branches(self, ref: RepoRef, required: bool = False) -> list[BranchRef]:
        """All branches of a repository, sorted by name."""
        branches = self.pager.collect(
            lambda page: self.api.list_branches(ref.owner, ref.name, page),
            f"branches of {ref}",
            required=required,
        )
        return sorted(branches, key=lambda b: b.name)

    def get_forks(self, ref: RepoRef) -> list[RepoNode]:
        """Direct forks of a repository, sorted by full name."""

        def fetch(page: int):
            self.log.debug(f"list forks of {ref} page: {page}")
            return self.api.list_forks(ref.owner, ref.name, page)

        forks = self.pager.collect(fetch, f"forks of {ref}")
        return sorted(forks, key=lambda f: f.full_name)

    def crawl(self, root: RepoRef) -> list[RepoNode]:
        """Return every fork reachable from ``root``, sorted by full name.

        The root itself is not included, and a fork listed under more than
        one parent appears once.
        """
        visited: set[RepoRef] = set()
        queue: deque[RepoRef] = deque([root])
        found: dict[RepoRef, RepoNode] = {}

        while queue:
            ref = queue.popleft()
            if ref in visited:
                continue
            visited.add(ref)

            for fork in self.get_forks(ref):
                if fork.ref == root or fork.ref in found:
                    continue
                found[fork.ref] = fork
                if fork.fork_count > 0:
                    queue.append(fork.ref)
                    self.log.debug(f"fork has forks: {fork.full_name}")

        all_forks = sorted(found.values(), key=lambda f: f.full_name)
        self.log.debug(f"forks: {len(all_forks)}")
        return all_forks
