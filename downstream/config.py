"""Configuration loading for downstream."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml

from .crawler.github_client import DEFAULT_BASE_URL, MAX_PER_PAGE

DEFAULT_WEB_URL = "https://github.com"
TOKEN_ENV_VAR = "GITHUB_TOKEN"


class ConfigError(Exception):
    """Invalid or incomplete configuration."""


@dataclass
class Settings:
    """Resolved settings for a single run."""
    owner: str
    repo: str
    token: str | None = None
    base_url: str = DEFAULT_BASE_URL
    web_url: str = DEFAULT_WEB_URL
    per_page: int = MAX_PER_PAGE
    rate_limit_margin: float = 1.0
    quiet: bool = False
    watch: bool = False
    json_path: Path | None = None


def load_config(config_path: Path) -> dict:
    """Load configuration from a YAML file."""
    if not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")
    return yaml.safe_load(config_path.read_text()) or {}


def parse_repo_arg(value: str) -> tuple[str, str]:
    """Split ``owner/name`` or a repository URL into owner and name."""
    parts = [p for p in value.strip().rstrip("/").split("/") if p]
    if len(parts) < 2:
        raise ConfigError(f"expected owner/repo, got {value!r}")
    owner, name = parts[-2], parts[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return owner, name


def resolve_settings(
    args,
    config: dict | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Merge CLI arguments over the config file and environment.

    Precedence: command line, then config file, then environment.
    """
    config = config or {}
    environ = os.environ if environ is None else environ
    gh_config = config.get("github") or {}
    crawl_config = config.get("crawl") or {}
    output_config = config.get("output") or {}

    owner, repo = args.owner, args.repo
    if getattr(args, "target", None):
        owner, repo = parse_repo_arg(args.target)
    if not owner:
        raise ConfigError("owner name not specified; see -owner flag")
    if not repo:
        raise ConfigError("repository name not specified; see -repo flag")

    json_path = args.json or output_config.get("json")

    return Settings(
        owner=owner,
        repo=repo,
        token=args.token or gh_config.get("token") or environ.get(TOKEN_ENV_VAR) or None,
        base_url=gh_config.get("base_url", DEFAULT_BASE_URL),
        web_url=gh_config.get("web_url", DEFAULT_WEB_URL),
        per_page=min(int(crawl_config.get("per_page", MAX_PER_PAGE)), MAX_PER_PAGE),
        rate_limit_margin=float(crawl_config.get("rate_limit_margin", 1.0)),
        quiet=bool(args.quiet),
        watch=bool(args.watch or config.get("watch", False)),
        json_path=Path(json_path) if json_path else None,
    )
