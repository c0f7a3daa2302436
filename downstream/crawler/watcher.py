"""Subscribe to forks that carry divergent work."""

from dataclasses import dataclass, field

from ..analyzers.divergence import ForkResult
from ..log import DiagnosticLog
from .pager import Pager
from .rate_limit import APIError, RateLimitedClient


@dataclass
class WatchResult:
    """What was found and done for one divergent fork."""
    fork: str
    owner_commits: dict[str, int] = field(default_factory=dict)
    subscribed: bool = False

    def to_dict(self) -> dict:
        return {
            "fork": self.fork,
            "owner_commits": self.owner_commits,
            "subscribed": self.subscribed,
        }


class ForkWatcher:
    """Watches divergent forks on behalf of the authenticated user."""

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

    def watch(self, result: ForkResult) -> WatchResult | None:
        """Count the owner's recent commits per interesting branch, then subscribe.

        Returns None for forks without interesting branches.
        """
        if not result.divergent:
            return None

        fork = result.fork
        watched = WatchResult(fork=fork.full_name)
        for branch in result.interesting_branches:
            commits = self.pager.collect(
                lambda page, b=branch.branch: self.api.list_commits(
                    fork.owner, fork.name, b, page
                ),
                f"commits of {fork.full_name}:{branch.branch}",
                max_items=branch.ahead_by,
            )
            watched.owner_commits[branch.branch] = sum(
                1 for c in commits if c.author_login == fork.owner
            )

        try:
            self.client.call(
                lambda: self.api.set_subscription(fork.owner, fork.name, True),
                f"watch {fork.full_name}",
            )
            watched.subscribed = True
            self.log.debug(f"watching {fork.full_name}")
        except APIError as e:
            self.log.warn(f"unable to watch {fork.full_name}; {e.__cause__ or e}")
        return watched
