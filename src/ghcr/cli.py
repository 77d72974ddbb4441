"""CLI for gh-cr, built on cyclopts."""

from __future__ import annotations

import curses
import functools
import logging
import os
import sys
from pathlib import Path

import cyclopts

from ghcr import gh
from ghcr.config import load_config
from ghcr.controller import ViewController
from ghcr.paths import state_dir
from ghcr.review_threads import fetch_threads, post_reply
from ghcr.session import Session, dump_view
from ghcr.skip_store import SkipStore, SkipStoreError, default_path
from ghcr.terminal import TerminalSession

logger = logging.getLogger(__name__)

LOG_FILENAME = "gh-cr.log"
LOG_LEVEL_ENV = "GHCR_LOG_LEVEL"

app = cyclopts.App(
    name="gh-cr",
    help="Review GitHub PR threads from your terminal.",
)


def configure_logging() -> Path | None:
    """Send log records to ``<state dir>/gh-cr.log``; the TUI owns stdout.

    Returns the log file path, or ``None`` if it could not be opened.
    """
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelNamesMapping().get(level_name, logging.WARNING)
    log_file = state_dir() / LOG_FILENAME
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as exc:
        print(f"gh-cr: logging disabled, cannot open {log_file}: {exc}", file=sys.stderr)  # noqa: T201
        handler = logging.NullHandler()
        log_file = None
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("ghcr")
    root.handlers[:] = [handler]
    root.setLevel(level)
    root.propagate = False
    return log_file


def _fail(message: str) -> None:
    print(message, file=sys.stderr)  # noqa: T201


def run_review(pr_number: int | None = None, *, dump: bool = False, cwd: str | None = None) -> int:
    """Load everything the session needs, then run it.

    Returns the process exit code: 0 after a normal quit or when there is no
    repository/PR to review, 1 when setup fails.
    """
    try:
        config, _ = load_config(cwd)
    except ValueError as exc:
        _fail(str(exc))
        return 1

    try:
        repo = gh.get_repo_info(cwd=cwd)
    except gh.GhError as exc:
        _fail(f"Unable to determine repository: {exc}")
        return 0

    if pr_number is None:
        try:
            pr_number = gh.get_current_pr_number(cwd=cwd)
        except gh.GhError as exc:
            _fail(f"No pull request associated with the current branch: {exc}")
            return 0

    try:
        skip_store = SkipStore.load()
    except SkipStoreError as exc:
        _fail(f"Failed to load skip list: {exc}")
        return 1

    try:
        threads = fetch_threads(repo, pr_number, cwd=cwd)
    except gh.GhError as exc:
        _fail(f"Failed to fetch review threads: {exc}")
        return 1

    controller = ViewController(threads, skip_store)
    if dump:
        dump_view(controller, pr_number, config)
        return 0

    try:
        with TerminalSession(mouse=config.display.mouse) as terminal:
            Session(
                controller=controller,
                pr_number=pr_number,
                terminal=terminal,
                fetch=functools.partial(fetch_threads, repo, pr_number, cwd=cwd),
                publish=functools.partial(post_reply, repo, pr_number, cwd=cwd),
                config=config,
            ).run()
    except curses.error as exc:
        logger.exception("Terminal failure")
        _fail(f"Terminal error: {exc}")
        return 1
    return 0


@app.default
def review(pr_number: int | None = None, *, dump: bool = False) -> None:
    """Browse and reply to the review threads of a pull request.

    Args:
        pr_number: Override the PR inferred from the current branch.
        dump: Print the current thread once and exit (no TUI).
    """
    configure_logging()
    sys.exit(run_review(pr_number, dump=dump))


@app.command(name="init-config")
def init_config_cmd() -> None:
    """Write a commented ``.gh-cr.toml`` template to the current directory."""
    from ghcr.config import init_config  # noqa: PLC0415

    init_config()


@app.command(name="check-env")
def check_env() -> None:
    """Print configuration, state paths and gh CLI status."""
    print("gh-cr check-env")  # noqa: T201
    print("=" * 40)  # noqa: T201

    try:
        config, config_path = load_config()
    except ValueError as exc:
        print(f"❌ Configuration error: {exc}")  # noqa: T201
        sys.exit(1)

    print(f"\n  Config file: {config_path or 'none (defaults)'}")  # noqa: T201
    print(f"  Wrap width: {config.display.wrap_width}")  # noqa: T201
    print(f"  Mouse: {'on' if config.display.mouse else 'off'}")  # noqa: T201
    editor = config.editor.command or os.environ.get("EDITOR", "") or "vim (default)"
    print(f"  Editor: {editor}")  # noqa: T201

    skip_path = default_path()
    print(f"\n  State directory: {state_dir()}")  # noqa: T201
    try:
        skipped = len(SkipStore.load(skip_path))
    except SkipStoreError as exc:
        print(f"  ❌ Skip list unreadable: {exc}")  # noqa: T201
    else:
        print(f"  Skip list: {skip_path} ({skipped} thread(s))")  # noqa: T201

    print("\n" + "-" * 40)  # noqa: T201
    print("Checking gh CLI...\n")  # noqa: T201
    try:
        username = gh.check_auth()
        print(f"  ✅ gh CLI authenticated as: {username}")  # noqa: T201
    except gh.GhError as exc:
        print(f"  ❌ gh CLI error: {exc}")  # noqa: T201

    print()  # noqa: T201
