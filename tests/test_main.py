"""End-to-end tests for the downstream driver and CLI configuration."""

import io

import pytest
from rich.console import Console

from downstream.analyzers.divergence import Classification
from downstream.config import ConfigError, load_config, parse_repo_arg, resolve_settings
from downstream.crawler.models import CommitAuthorship, CompareResult, CompareStatus
from downstream.crawler.rate_limit import APIError
from downstream.main import build_parser, main, run_downstream
from downstream.store.output import Reporter

from conftest import quota_error, server_error


@pytest.fixture
def stdout():
    return io.StringIO()


@pytest.fixture
def reporter(log, stdout):
    return Reporter(log, Console(file=stdout, width=200, color_system=None))


@pytest.fixture
def widget(api):
    api.add_repo("alice/widget", branches=["master"])
    api.add_repo("acme/widget", branches=["master"], forks=["alice/widget"])
    api.comparisons[("acme:master", "alice:master")] = CompareResult(
        status=CompareStatus.AHEAD,
        ahead_by=2,
        commits=[CommitAuthorship("alice"), CommitAuthorship("alice")],
    )
    return api


def run(api, log, reporter, clock, **kwargs):
    return run_downstream(
        "acme", "widget", api, log, reporter,
        rate_limit_margin=0, clock=clock.time, sleep=clock.sleep, **kwargs,
    )


def test_end_to_end_interesting_fork(widget, log, reporter, clock, stdout):
    result = run(widget, log, reporter, clock)

    assert [f.fork.full_name for f in result.divergent_forks] == ["alice/widget"]
    assert len(reporter.interesting_records) == 1
    record = reporter.interesting_records[0]
    assert record["base"] == "acme:master"
    assert record["head"] == "alice:master"
    assert record["ahead_by"] == 2
    assert "alice:master ahead 2 (and behind 0) of acme:master" in stdout.getvalue()


def test_end_to_end_survives_rate_limit(widget, log, reporter, clock):
    widget.failures[("compare_commits", "acme:master", "alice:master")] = [quota_error(1_060)]

    result = run(widget, log, reporter, clock)

    assert clock.sleeps == [60]
    branch = result.forks[0].branches[0]
    assert branch.classification is Classification.INTERESTING


def test_end_to_end_with_watch(widget, log, reporter, clock):
    widget.commits[("alice/widget", "master")] = [CommitAuthorship("alice", "b"), CommitAuthorship("alice", "a")]

    result = run(widget, log, reporter, clock, watch=True)

    assert widget.subscriptions == {"alice/widget": True}
    assert result.watched[0].owner_commits == {"master": 2}


def test_missing_root_repository_aborts(api, log, reporter, clock, stdout):
    with pytest.raises(APIError) as excinfo:
        run(api, log, reporter, clock)
    assert "get repository acme/widget" in str(excinfo.value)
    assert excinfo.value.__cause__ is not None
    assert stdout.getvalue() == ""


def test_root_branch_failure_aborts(widget, log, reporter, clock):
    widget.failures[("list_branches", "acme/widget", 1)] = [server_error()]
    with pytest.raises(APIError):
        run(widget, log, reporter, clock)
    assert widget.count("list_forks") == 0


def test_fork_branch_failure_is_not_fatal(widget, log, reporter, clock, stderr):
    widget.failures[("list_branches", "alice/widget", 1)] = [server_error()]
    result = run(widget, log, reporter, clock)
    assert result.forks[0].branches == []
    assert "unable to get branches of alice/widget (page 1)" in stderr.getvalue()


def parse(*argv):
    return build_parser().parse_args(list(argv))


def test_flags_resolve_settings():
    settings = resolve_settings(
        parse("-owner", "acme", "-repo", "widget", "-token", "t0k", "-q"),
        environ={},
    )
    assert (settings.owner, settings.repo, settings.token) == ("acme", "widget", "t0k")
    assert settings.quiet
    assert settings.per_page == 100
    assert settings.json_path is None


def test_token_from_environment():
    settings = resolve_settings(parse("acme/widget"), environ={"GITHUB_TOKEN": "env"})
    assert settings.token == "env"


def test_config_file_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "github:\n"
        "  token: from-file\n"
        "  base_url: https://ghe.example.com/api/v3\n"
        "crawl:\n"
        "  per_page: 500\n"
        "output:\n"
        "  json: out/report.json\n"
        "watch: true\n"
    )
    settings = resolve_settings(parse("-owner", "acme", "-repo", "widget"), load_config(path), environ={})
    assert settings.token == "from-file"
    assert settings.base_url == "https://ghe.example.com/api/v3"
    assert settings.per_page == 100
    assert settings.watch
    assert str(settings.json_path) == "out/report.json"


def test_missing_owner_is_an_error():
    with pytest.raises(ConfigError):
        resolve_settings(parse("-repo", "widget"), environ={})


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("acme/widget", ("acme", "widget")),
        ("https://github.com/acme/widget", ("acme", "widget")),
        ("https://github.com/acme/widget.git/", ("acme", "widget")),
    ],
)
def test_parse_repo_arg(value, expected):
    assert parse_repo_arg(value) == expected


def test_main_exits_on_missing_repo(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["-owner", "acme"])
    assert excinfo.value.code == 1
