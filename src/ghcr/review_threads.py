"""Fetching review threads and posting replies through gh."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ghcr import gh
from ghcr.models import Comment, Thread

if TYPE_CHECKING:
    from ghcr.models import QueuedReply, Repo

logger = logging.getLogger(__name__)

# GraphQL query to fetch review threads for a PR (paginated)
_THREADS_QUERY = """
query($owner: String!, $name: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      reviewThreads(first: 100, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        nodes {
          id
          isResolved
          path
          comments(first: 100) {
            nodes {
              id
              databaseId
              body
              diffHunk
              createdAt
              author { login }
            }
          }
        }
      }
    }
  }
}
"""

_MAX_PAGES = 20


class ThreadFetchError(gh.GhError):
    """Raised when the thread payload violates the expected contract."""


def _check_graphql_errors(result: dict[str, Any], context: str) -> None:
    """Raise ThreadFetchError if a GraphQL response contains errors."""
    errors = result.get("errors")
    if errors:
        msg = f"GraphQL error in {context}: {errors[0].get('message', errors)}"
        raise ThreadFetchError(msg)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp such as ``2026-02-06T10:00:00Z``."""
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        msg = f"invalid timestamp: {value!r}"
        raise ThreadFetchError(msg) from exc
    if parsed.tzinfo is None:
        msg = f"invalid timestamp: {value!r} has no UTC offset"
        raise ThreadFetchError(msg)
    return parsed


def _author_login(author: Any) -> str:
    # Deleted accounts come back as a null author.
    if isinstance(author, dict) and author.get("login"):
        return author["login"]
    return "unknown"


def _parse_comment(node: Any) -> Comment:
    if not isinstance(node, dict):
        msg = f"malformed comment node: {node!r}"
        raise ThreadFetchError(msg)
    database_id = node.get("databaseId")
    if database_id is None:
        msg = f"comment {node.get('id', '?')} missing databaseId"
        raise ThreadFetchError(msg)
    try:
        return Comment(
            comment_id=node["id"],
            database_id=database_id,
            author=_author_login(node.get("author")),
            body=node.get("body") or "",
            diff_hunk=node.get("diffHunk"),
            created_at=parse_timestamp(node.get("createdAt", "")),
        )
    except (KeyError, ValidationError) as exc:
        msg = f"malformed comment {node.get('id', '?')}: {exc}"
        raise ThreadFetchError(msg) from exc


def parse_thread(node: Any) -> Thread:
    """Parse one raw GraphQL thread node.

    A thread without comments, or with fields of the wrong type, is a
    contract violation and is rejected.
    """
    if not isinstance(node, dict):
        msg = f"malformed thread node: {node!r}"
        raise ThreadFetchError(msg)
    thread_id = node.get("id")
    if not thread_id:
        msg = "thread missing id"
        raise ThreadFetchError(msg)
    comments_conn = node.get("comments") or {}
    comments_raw = comments_conn.get("nodes") if isinstance(comments_conn, dict) else None
    if not comments_raw:
        msg = f"thread {thread_id} missing comments"
        raise ThreadFetchError(msg)

    comments = [_parse_comment(c) for c in comments_raw]
    diff_hunk = next((c.diff_hunk for c in comments if c.diff_hunk), None)
    try:
        return Thread(
            thread_id=thread_id,
            path=node.get("path") or "unknown",
            diff_hunk=diff_hunk,
            is_resolved=bool(node.get("isResolved", False)),
            comments=comments,
        )
    except ValidationError as exc:
        msg = f"malformed thread {thread_id}: {exc}"
        raise ThreadFetchError(msg) from exc


def _review_threads_page(result: dict[str, Any]) -> dict[str, Any]:
    data = result.get("data")
    repository = data.get("repository") if isinstance(data, dict) else None
    if not isinstance(repository, dict):
        msg = "repository missing from response"
        raise ThreadFetchError(msg)
    pull_request = repository.get("pullRequest")
    if not isinstance(pull_request, dict):
        msg = "pull request missing from response"
        raise ThreadFetchError(msg)
    page = pull_request.get("reviewThreads")
    if not isinstance(page, dict):
        msg = "reviewThreads missing from response"
        raise ThreadFetchError(msg)
    return page


def fetch_threads(repo: Repo, pr_number: int, cwd: str | None = None) -> list[Thread]:
    """Fetch every review thread on a PR, in the order GitHub returns them."""
    raw_nodes: list[dict[str, Any]] = []
    cursor: str | None = None
    for _ in range(_MAX_PAGES):
        variables: dict[str, Any] = {"owner": repo.owner, "name": repo.name, "number": pr_number}
        if cursor:
            variables["cursor"] = cursor
        result = gh.graphql(_THREADS_QUERY, variables=variables, cwd=cwd)
        if not isinstance(result, dict):
            msg = f"unexpected GraphQL response for {repo}#{pr_number}: {type(result).__name__}"
            raise ThreadFetchError(msg)
        _check_graphql_errors(result, f"fetch threads for {repo}#{pr_number}")
        page = _review_threads_page(result)
        raw_nodes.extend(page.get("nodes") or [])
        page_info = page.get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            break
        cursor = page_info.get("endCursor")
    else:
        logger.warning("Stopped paging review threads for %s#%d after %d pages", repo, pr_number, _MAX_PAGES)

    threads = [parse_thread(node) for node in raw_nodes]
    logger.info("Fetched %d review threads for %s#%d", len(threads), repo, pr_number)
    return threads


def post_reply(repo: Repo, pr_number: int, reply: QueuedReply, cwd: str | None = None) -> None:
    """Publish one reply to an inline review comment.

    Raises:
        GhError: If gh reports a failure. Success is all-or-nothing.
    """
    gh.rest(
        f"repos/{repo.owner}/{repo.name}/pulls/{pr_number}/comments/{reply.comment_database_id}/replies",
        method="POST",
        cwd=cwd,
        body=reply.body,
    )
    logger.info("Posted reply to comment %d on %s#%d", reply.comment_database_id, repo, pr_number)
