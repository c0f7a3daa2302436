"""Main entry point for downstream."""

import argparse
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import yaml
from rich.console import Console
from rich.markup import escape

from .analyzers.divergence import DivergenceClassifier, ForkResult
from .config import ConfigError, load_config, resolve_settings
from .crawler.fork_graph import RepoGraphCrawler
from .crawler.github_client import GitHubClient
from .crawler.models import RepoNode, RepoRef
from .crawler.pager import Pager
from .crawler.rate_limit import APIError, RateLimitedClient
from .crawler.watcher import ForkWatcher, WatchResult
from .log import DiagnosticLog
from .store.output import Reporter

EXAMPLE = """
Example:

    downstream -owner USER -repo REPO -token ACCESS_TOKEN

To create a personal access token on GitHub visit https://github.com/settings/tokens
"""


@dataclass
class DownstreamResult:
    """Everything a run produced."""
    upstream: RepoNode
    forks: list[ForkResult] = field(default_factory=list)
    watched: list[WatchResult] = field(default_factory=list)

    @property
    def divergent_forks(self) -> list[ForkResult]:
        return [f for f in self.forks if f.divergent]


def run_downstream(
    owner: str,
    repo: str,
    api,
    log: DiagnosticLog,
    reporter: Reporter,
    watch: bool = False,
    rate_limit_margin: float = 1.0,
    clock: Callable[[], float] = time.time,
    sleep: Callable[[float], None] = time.sleep,
) -> DownstreamResult:
    """Locate forks of owner/repo with divergent commits.

    Raises APIError when the repository or its branch list cannot be
    fetched, since no comparison baseline exists without them.
    """
    client = RateLimitedClient(log, margin=rate_limit_margin, clock=clock, sleep=sleep)
    pager = Pager(client, log)
    crawler = RepoGraphCrawler(api, client, pager, log)
    classifier = DivergenceClassifier(api, client, pager, log)
    watcher = ForkWatcher(api, client, pager, log) if watch else None

    root = RepoRef(owner=owner, name=repo)
    upstream = crawler.get_repository(root)
    log.debug(f"repo: {upstream.owner} {upstream.name}")
    branches = crawler.get_branches(upstream.ref, required=True)
    for branch in branches:
        log.debug(f"   branch: {branch.name}")
    log.debug(f"   default branch: {upstream.default_branch}")
    upstream_branches = {b.name for b in branches}

    forks = crawler.crawl(upstream.ref)
    for fork in forks:
        log.debug(f"fork: {fork.owner} {fork.name}")

    result = DownstreamResult(upstream=upstream)
    for fork in forks:
        fork_result = classifier.classify_fork(upstream, upstream_branches, fork)
        reporter.report_fork(fork_result)
        result.forks.append(fork_result)
        if watcher:
            watched = watcher.watch(fork_result)
            if watched:
                result.watched.append(watched)

    reporter.log_summary()
    return result


def _print_error(console: Console, error: BaseException) -> None:
    """Print an error followed by its chain of causes."""
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    cause = error.__cause__
    while cause is not None:
        console.print(f"  [red]caused by:[/red] {escape(f'{type(cause).__name__}: {cause}')}")
        cause = cause.__cause__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="downstream",
        description="Locate forks with divergent commits (branches with commits ahead of the original repository)",
        epilog=EXAMPLE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="Repository as owner/repo or a GitHub URL (alternative to -owner/-repo)",
    )
    parser.add_argument("-owner", "--owner", help="Owner name (GitHub user or organization)")
    parser.add_argument("-repo", "--repo", help="Repository name")
    parser.add_argument("-token", "--token", help="GitHub OAuth personal access token")
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-error messages",
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Watch forks that have branches with divergent commits",
    )
    parser.add_argument("--json", help="Write a JSON report to this path")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    err_console = Console(stderr=True)

    try:
        config = load_config(Path(args.config)) if args.config else {}
        settings = resolve_settings(args, config)
    except (ConfigError, yaml.YAMLError) as e:
        _print_error(err_console, e)
        parser.print_usage(sys.stderr)
        raise SystemExit(1)

    log = DiagnosticLog(err_console, quiet=settings.quiet)
    if not settings.token:
        log.warn("OAuth token not specified; see -token flag")
    if settings.watch and not settings.token:
        log.warn("watching forks requires a token; subscriptions will fail")

    api = GitHubClient(
        token=settings.token,
        base_url=settings.base_url,
        per_page=settings.per_page,
    )
    reporter = Reporter(log, Console(), web_url=settings.web_url)

    try:
        result = run_downstream(
            settings.owner,
            settings.repo,
            api,
            log,
            reporter,
            watch=settings.watch,
            rate_limit_margin=settings.rate_limit_margin,
        )
    except APIError as e:
        _print_error(err_console, e)
        raise SystemExit(1)

    if settings.json_path:
        watched = [w.to_dict() for w in result.watched] if settings.watch else None
        reporter.generate_json(settings.json_path, watched=watched)


if __name__ == "__main__":
    main()
