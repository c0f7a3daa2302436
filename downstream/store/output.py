"""Report branch classifications to the console and to JSON."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console

from ..analyzers.divergence import BranchResult, Classification, ForkResult
from ..log import DiagnosticLog

DEBUG_TAGS = {
    Classification.NOT_AHEAD: "NOT AHEAD",
    Classification.ANONYMOUS_DIVERGENCE: "ANONYMOUS COMMIT",
    Classification.UNATTRIBUTED_DIVERGENCE: "NO COMMIT BY FORK OWNER",
}


class Reporter:
    """Prints interesting branches to stdout and everything else as diagnostics.

    Every reported branch is also kept as a record for the JSON report.
    """

    def __init__(
        self,
        log: DiagnosticLog,
        console: Console | None = None,
        web_url: str = "https://github.com",
    ):
        self.log = log
        self.console = console or Console()
        self.web_url = web_url
        self.records: list[dict] = []
        self.forks_scanned = 0
        self.divergent_forks = 0

    def report_fork(self, result: ForkResult) -> None:
        """Report all branches of one fork."""
        self.forks_scanned += 1
        if result.divergent:
            self.divergent_forks += 1
        for branch in result.branches:
            self.report_branch(branch)

    def report_branch(self, branch: BranchResult) -> None:
        self.records.append(branch.to_dict(self.web_url))
        if branch.interesting:
            self._print_interesting(branch)
            return

        tag = DEBUG_TAGS[branch.classification]
        self.log.debug(
            f'{tag} status: "{branch.status.value}" (head={branch.head} vs base={branch.base})'
        )
        if branch.classification is Classification.NOT_AHEAD:
            return
        self.log.debug(
            f"{tag} {branch.head} ahead {branch.ahead_by} "
            f"(and behind {branch.behind_by}) of {branch.base}"
        )
        self.log.debug(f"{tag} {branch.commits_url(self.web_url, by_owner=False)}")

    def _print_interesting(self, branch: BranchResult) -> None:
        lines = [
            f'status: "{branch.status.value}" (head={branch.head} vs base={branch.base})',
            f"{branch.head} ahead {branch.ahead_by} (and behind {branch.behind_by}) of {branch.base}",
            branch.commits_url(self.web_url),
            "",
        ]
        for line in lines:
            self.console.print(line, markup=False, highlight=False, soft_wrap=True)

    @property
    def interesting_records(self) -> list[dict]:
        return [
            r for r in self.records
            if r["classification"] == Classification.INTERESTING.value
        ]

    def get_summary(self) -> dict[str, Any]:
        """Counts over everything reported so far."""
        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "forks_scanned": self.forks_scanned,
            "branches_compared": len(self.records),
            "interesting_branches": len(self.interesting_records),
            "divergent_forks": self.divergent_forks,
        }

    def log_summary(self) -> None:
        summary = self.get_summary()
        self.log.debug(
            f"scanned {summary['forks_scanned']} forks, "
            f"compared {summary['branches_compared']} branches; "
            f"{summary['interesting_branches']} interesting branches in "
            f"{summary['divergent_forks']} forks"
        )

    def generate_json(self, path: Path | str, watched: list[dict] | None = None) -> Path:
        """Write the summary and all records as JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "summary": self.get_summary(),
            "branches": self.records,
        }
        if watched is not None:
            data["watched"] = watched
        path.write_text(json.dumps(data, indent=2, default=str))
        self.log.debug(f"wrote JSON report to {path}")
        return path
