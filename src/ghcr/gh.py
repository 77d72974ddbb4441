"""GitHub CLI (gh) wrapper for gh-cr.

All GitHub API calls go through the `gh` CLI, which handles authentication
transparently. No PAT tokens or .env files needed.
"""

from __future__ import annotations

import json
import logging
import subprocess  # noqa: S404
import time
from typing import Any

from ghcr.models import Repo
from ghcr.paths import state_dir

logger = logging.getLogger(__name__)

_GH_LOG_FILENAME = "gh_calls.jsonl"
_MAX_GH_LOG_LINES = 10_000
_GH_ROTATE_EVERY_WRITES = 100
_gh_log_state: dict[str, int] = {"write_count": 0}


def _truncate_gh_log_if_needed() -> None:
    """Keep only the last N gh call log entries."""
    log_file = state_dir() / _GH_LOG_FILENAME
    try:
        if not log_file.exists():
            return
        lines = log_file.read_text(encoding="utf-8").splitlines()
        if len(lines) <= _MAX_GH_LOG_LINES:
            return
        log_file.write_text("\n".join(lines[-_MAX_GH_LOG_LINES:]) + "\n", encoding="utf-8")
    except OSError:
        logger.debug("Could not truncate %s", log_file, exc_info=True)


def _log_gh_call(entry: dict[str, Any]) -> None:
    """Append a JSON log entry to gh_calls.jsonl."""
    log_dir = state_dir()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        with (log_dir / _GH_LOG_FILENAME).open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")
        _gh_log_state["write_count"] += 1
        if _gh_log_state["write_count"] % _GH_ROTATE_EVERY_WRITES == 0:
            _truncate_gh_log_if_needed()
    except OSError:
        logger.debug("Could not write gh call log in %s", log_dir, exc_info=True)


def _summarize_cmd(args: tuple[str, ...]) -> str:
    """Build a short summary of the gh command for logging."""
    # e.g. ("api", "graphql", "-f", "query=...") -> "api graphql"
    # e.g. ("pr", "view", "--json", "number") -> "pr view"
    summary_parts: list[str] = []
    for arg in args:
        if arg.startswith("-") or "=" in arg:
            break
        summary_parts.append(arg)
    return " ".join(summary_parts) or "unknown"


class GhError(Exception):
    """Raised when a gh CLI command fails."""

    def __init__(self, message: str, stderr: str = "", returncode: int = 1) -> None:
        super().__init__(message)
        self.stderr = stderr
        self.returncode = returncode


class GhNotFoundError(GhError):
    """Raised when gh CLI is not installed."""

    def __init__(self) -> None:
        super().__init__("gh CLI not found. Install it: https://cli.github.com/ then run: gh auth login")


class GhNotAuthenticatedError(GhError):
    """Raised when gh CLI is not authenticated."""

    def __init__(self, stderr: str = "") -> None:
        super().__init__(
            "gh CLI is not authenticated. Run: gh auth login",
            stderr=stderr,
        )


def run_gh(*args: str, cwd: str | None = None) -> str:
    """Run a gh CLI command and return stdout.

    Args:
        *args: Arguments to pass to gh (e.g. "api", "graphql", "-f", "query=...").
        cwd: Working directory for the command.

    Returns:
        stdout as a string.

    Raises:
        GhNotFoundError: If gh is not installed.
        GhError: If the command fails.
    """
    cmd = ["gh", *args]
    cmd_summary = _summarize_cmd(args)
    logger.debug("Running: gh %s", cmd_summary)
    start = time.perf_counter()
    start_ts = time.strftime("%Y-%m-%dT%H:%M:%S%z")
    try:
        result = subprocess.run(  # noqa: S603
            cmd,
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
        )
    except FileNotFoundError:
        _log_gh_call({
            "ts": start_ts,
            "cmd": cmd_summary,
            "duration_ms": round((time.perf_counter() - start) * 1000),
            "error": "FileNotFoundError",
        })
        raise GhNotFoundError from None

    stderr_text = result.stderr.strip()
    _log_gh_call({
        "ts": start_ts,
        "cmd": cmd_summary,
        "duration_ms": round((time.perf_counter() - start) * 1000),
        "exit_code": result.returncode,
        "stdout_bytes": len(result.stdout),
        "stderr": stderr_text[:500] if stderr_text else None,
    })

    if result.returncode != 0:
        logger.debug("gh stderr: %s", result.stderr)
        raise GhError(
            stderr_text or f"gh {cmd_summary} exited with status {result.returncode}",
            stderr=result.stderr,
            returncode=result.returncode,
        )
    return result.stdout


def _parse_json(raw: str, context: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON from gh {context}: {exc}"
        raise GhError(msg) from exc


def graphql(query: str, variables: dict[str, Any] | None = None, cwd: str | None = None) -> dict[str, Any]:
    """Execute a GitHub GraphQL query via gh api graphql.

    Args:
        query: GraphQL query string.
        variables: Optional variables to pass with -f (strings) or -F (ints/bools).
        cwd: Working directory.

    Returns:
        Parsed JSON response.
    """
    args = ["api", "graphql", "-f", f"query={query}"]
    for key, value in (variables or {}).items():
        if value is None:
            continue
        if isinstance(value, int | bool):
            args.extend(["-F", f"{key}={value}"])
        else:
            args.extend(["-f", f"{key}={value}"])

    return _parse_json(run_gh(*args, cwd=cwd), "api graphql")


def rest(
    endpoint: str,
    method: str = "GET",
    cwd: str | None = None,
    **kwargs: str,
) -> Any:
    """Execute a GitHub REST API call via gh api.

    Args:
        endpoint: REST API endpoint (e.g. "repos/{owner}/{repo}/pulls").
        method: HTTP method.
        cwd: Working directory.
        **kwargs: Additional -f parameters.

    Returns:
        Parsed JSON response, or ``None`` for an empty body.
    """
    args = ["api", endpoint, "--method", method]
    for key, value in kwargs.items():
        args.extend(["-f", f"{key}={value}"])

    raw = run_gh(*args, cwd=cwd)
    if not raw.strip():
        return None
    return _parse_json(raw, f"api {endpoint}")


def check_auth(cwd: str | None = None) -> str:
    """Verify gh CLI is installed and authenticated.

    Returns:
        The authenticated GitHub username.

    Raises:
        GhNotFoundError: If gh is not installed.
        GhNotAuthenticatedError: If not authenticated.
    """
    try:
        result = run_gh("auth", "status", cwd=cwd)
    except GhNotFoundError:
        raise
    except GhError as e:
        raise GhNotAuthenticatedError(stderr=e.stderr) from e

    # Extract username from output like "Logged in to github.com account username"
    for line in result.splitlines():
        if "account" in line.lower():
            parts = line.split()
            for i, part in enumerate(parts):
                if part.lower() == "account" and i + 1 < len(parts):
                    return parts[i + 1].strip("()")
    return "authenticated"


def get_current_pr_number(cwd: str | None = None) -> int:
    """Detect the PR number associated with the current git branch.

    Uses ``gh pr view`` which resolves the current branch to its open PR.

    Raises:
        GhError: If no PR is associated with the current branch.
    """
    raw = run_gh("pr", "view", "--json", "number", "-q", ".number", cwd=cwd)
    try:
        return int(raw.strip())
    except ValueError as exc:
        msg = f"Unexpected PR number from gh pr view: {raw.strip()!r}"
        raise GhError(msg) from exc


def get_repo_info(cwd: str | None = None) -> Repo:
    """Get the owner and name of the repository in the working directory."""
    raw = run_gh("repo", "view", "--json", "nameWithOwner", "-q", ".nameWithOwner", cwd=cwd)
    return parse_repo(raw.strip())


def parse_repo(owner_repo: str) -> Repo:
    """Parse an ``owner/name`` string."""
    owner, sep, name = owner_repo.partition("/")
    if not sep or not owner or not name:
        msg = f"Expected repository as 'owner/name', got {owner_repo!r}"
        raise GhError(msg)
    return Repo(owner=owner, name=name)
