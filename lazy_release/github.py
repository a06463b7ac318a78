"""GitHub access through the gh CLI.

Reads (tags, branch history, pull requests) go through the GraphQL API and are
exposed as generators that fetch one page at a time, so callers that stop early
never pay for the pages they don't read. A page that fails to load ends the
sequence. Writes go through the REST API and raise on failure.
"""

from __future__ import annotations

import base64
import json
import re
from collections.abc import Callable, Iterator
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

from .exceptions import (
    ConfigError,
    DuplicateReleaseError,
    FileNotFoundOnBranchError,
    GitHubError,
)
from .models import Commit, PullRequest, Release, Tag, Update
from .shell import debug, gh, warn

PAGE_SIZE = 10
PULL_REQUEST_STATES = ("OPEN", "CLOSED", "MERGED")
DEFAULT_FILE_MODE = "100644"

TAGS_QUERY = """
query latestTags($owner: String!, $repo: String!, $count: Int!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    refs(refPrefix: "refs/tags/", first: $count, after: $cursor,
         orderBy: {field: TAG_COMMIT_DATE, direction: DESC}) {
      nodes {
        name
        target {
          ... on Commit { oid committedDate }
          ... on Tag { target { oid ... on Commit { committedDate } } }
        }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

HISTORY_QUERY = """
query branchHistory($owner: String!, $repo: String!, $count: Int!,
                    $branch: String!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    ref(qualifiedName: $branch) {
      target {
        ... on Commit {
          history(first: $count, after: $cursor) {
            nodes {
              sha: oid
              message
              associatedPullRequests(first: 10) {
                nodes {
                  number title body permalink headRefName baseRefName
                  mergeCommit { oid }
                  labels(first: 10) { nodes { name } }
                }
              }
            }
            pageInfo { hasNextPage endCursor }
          }
        }
      }
    }
  }
}
"""

PULL_REQUESTS_QUERY = """
query pullRequests($owner: String!, $repo: String!, $count: Int!,
                   $branch: String!, $state: PullRequestState!, $cursor: String) {
  repository(owner: $owner, name: $repo) {
    pullRequests(first: $count, after: $cursor, baseRefName: $branch,
                 states: [$state], orderBy: {field: CREATED_AT, direction: DESC}) {
      nodes {
        number title body permalink headRefName baseRefName
        mergeCommit { oid }
        labels(first: 10) { nodes { name } }
      }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""

# One page: the nodes plus GraphQL pageInfo, or None when nothing could be read
Page = tuple[list[dict[str, Any]], dict[str, Any]]


class Repository(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_repository(value: str) -> Repository:
    """Parse "owner/repo".

    Raises:
        ConfigError: If value is not in owner/repo form.
    """
    match = re.fullmatch(r"([\w.-]+)/([\w.-]+)", value.strip())
    if not match:
        raise ConfigError(f"Invalid GitHub repository '{value}', expected owner/repo")
    return Repository(owner=match[1], repo=match[2])


def _labels(node: dict[str, Any]) -> list[str]:
    return [label["name"] for label in (node.get("labels") or {}).get("nodes") or []]


def _merge_oid(node: dict[str, Any]) -> str | None:
    return (node.get("mergeCommit") or {}).get("oid")


def _to_pull_request(node: dict[str, Any], sha: str | None) -> PullRequest:
    return PullRequest(
        sha=sha,
        number=node["number"],
        title=node.get("title") or "",
        body=node.get("body") or "",
        permalink=node.get("permalink") or "",
        head_branch_name=node.get("headRefName") or "",
        base_branch_name=node.get("baseRefName") or "",
        merge_commit_oid=_merge_oid(node),
        labels=_labels(node),
    )


def _to_commit(node: dict[str, Any]) -> Commit:
    """Map a history node; its pull request is the one it is the merge commit of,
    else the first associated one."""
    associated = (node.get("associatedPullRequests") or {}).get("nodes") or []
    merged = next((pr for pr in associated if _merge_oid(pr) == node["sha"]), None)
    pr_node = merged or (associated[0] if associated else None)
    return Commit(
        sha=node["sha"],
        message=node.get("message") or "",
        is_merge_commit=merged is not None,
        pull_request=_to_pull_request(pr_node, node["sha"]) if pr_node else None,
    )


def _to_tag(node: dict[str, Any]) -> Tag | None:
    """Map a tag ref to the commit it points at; None for tree or blob tags."""
    target = node["target"]
    # Annotated tags point at a tag object, which points at the commit
    if "oid" not in target:
        target = target.get("target") or {}
    if "oid" not in target:
        return None
    return Tag(
        sha=target["oid"],
        name=node["name"],
        committed_date=target.get("committedDate") or "",
    )


def _rest_pull_request(data: dict[str, Any]) -> PullRequest:
    return PullRequest(
        number=data["number"],
        title=data.get("title") or "",
        body=data.get("body") or "",
        permalink=data.get("html_url") or "",
        head_branch_name=data["head"]["ref"],
        base_branch_name=data["base"]["ref"],
        labels=[label["name"] for label in data.get("labels", []) if label.get("name")],
    )


class GitHub:
    """The remote repository, as seen by the release flow."""

    def __init__(self, repository: Repository, page_size: int = PAGE_SIZE) -> None:
        self.repository = repository
        self.page_size = page_size

    # -- reads ---------------------------------------------------------------

    def _graphql(
        self, query: str, check: bool = False, **variables: str | None
    ) -> dict[str, Any] | None:
        """Run a GraphQL query.

        With check, a failed or unreadable response raises GitHubError instead
        of reading as "no data".
        """
        args = ["api", "graphql", "-f", f"query={query}"]
        args += ["-F", f"count={self.page_size}"]
        args += ["-f", f"owner={self.repository.owner}"]
        args += ["-f", f"repo={self.repository.repo}"]
        for name, value in variables.items():
            if value is not None:
                args += ["-f", f"{name}={value}"]

        output = gh(*args, check=check)
        if not output:
            return None
        try:
            return json.loads(output).get("data")
        except json.JSONDecodeError as e:
            if check:
                raise GitHubError(
                    "Failed to parse GraphQL response", output=output
                ) from e
            warn("Failed to parse GraphQL response")
            return None

    def _paginate(
        self,
        fetch_page: Callable[[str | None], Page | None],
        max_results: int | None,
    ) -> Iterator[dict[str, Any]]:
        cursor: str | None = None
        results = 0
        while max_results is None or results < max_results:
            page = fetch_page(cursor)
            if page is None:
                return
            nodes, page_info = page
            for node in nodes:
                if max_results is not None and results >= max_results:
                    return
                results += 1
                yield node
            if not page_info.get("hasNextPage"):
                return
            cursor = page_info.get("endCursor")

    def tags(self, max_results: int | None = None) -> Iterator[Tag]:
        """Tags, most recently committed first."""

        def fetch_page(cursor: str | None) -> Page | None:
            debug(f"Fetching tags with cursor '{cursor}'...")
            data = self._graphql(TAGS_QUERY, cursor=cursor)
            refs = ((data or {}).get("repository") or {}).get("refs")
            if not refs:
                return None
            return refs.get("nodes") or [], refs["pageInfo"]

        for node in self._paginate(fetch_page, max_results):
            tag = _to_tag(node)
            if tag is None:
                debug(f"Skipping tag '{node['name']}', it does not point at a commit")
                continue
            yield tag

    def merge_commits(
        self, branch: str, max_results: int | None = None
    ) -> Iterator[Commit]:
        """History of branch, newest first. Empty if the branch does not exist."""

        def fetch_page(cursor: str | None) -> Page | None:
            debug(f"Fetching commits on branch '{branch}' with cursor '{cursor}'...")
            data = self._graphql(
                HISTORY_QUERY, branch=f"refs/heads/{branch}", cursor=cursor
            )
            ref = ((data or {}).get("repository") or {}).get("ref")
            if not ref:
                warn(f"No commits found for branch '{branch}'")
                return None
            history = ref["target"]["history"]
            return history.get("nodes") or [], history["pageInfo"]

        for node in self._paginate(fetch_page, max_results):
            yield _to_commit(node)

    def pull_requests(
        self,
        branch: str,
        status: str = "MERGED",
        max_results: int | None = None,
        strict: bool = False,
    ) -> Iterator[PullRequest]:
        """Pull requests into branch with the given state, newest first.

        A failed lookup ends the sequence, unless strict is set, in which case
        it raises GitHubError.
        """
        if status not in PULL_REQUEST_STATES:
            raise ValueError(f"Unknown pull request state '{status}'")

        def fetch_page(cursor: str | None) -> Page | None:
            debug(f"Fetching pull requests on '{branch}', cursor '{cursor}'...")
            data = self._graphql(
                PULL_REQUESTS_QUERY,
                check=strict,
                branch=branch,
                state=status,
                cursor=cursor,
            )
            pull_requests = ((data or {}).get("repository") or {}).get("pullRequests")
            if not pull_requests:
                if strict:
                    raise GitHubError(
                        f"Could not find pull requests for branch '{branch}'"
                    )
                warn(f"Could not find pull requests for branch '{branch}'")
                return None
            return pull_requests.get("nodes") or [], pull_requests["pageInfo"]

        for node in self._paginate(fetch_page, max_results):
            # Only merged pull requests have a merge commit
            yield _to_pull_request(node, _merge_oid(node))

    def fetch_file_contents(self, path: str, branch: str) -> str:
        """Text of path on branch.

        Raises:
            FileNotFoundOnBranchError: If the file does not exist on branch.
        """
        debug(f"Fetching file '{path}' from branch '{branch}'...")
        try:
            data = self._rest("GET", f"contents/{quote(path)}?ref={quote(branch)}")
        except GitHubError as e:
            if e.status == 404:
                raise FileNotFoundOnBranchError(path, branch) from e
            raise
        return base64.b64decode(data["content"]).decode("utf-8")

    def default_branch(self) -> str:
        return self._rest("GET", "")["default_branch"]

    # -- writes --------------------------------------------------------------

    def _rest(
        self, method: str, endpoint: str, payload: dict[str, Any] | None = None
    ) -> Any:
        url = f"repos/{self.repository}"
        if endpoint:
            url = f"{url}/{endpoint}"
        args = ["api", "--method", method, url]
        if payload is not None:
            args += ["--input", "-"]
        output = gh(*args, input=json.dumps(payload) if payload is not None else None)
        return json.loads(output) if output else {}

    def _build_tree(self, updates: list[Update], branch: str) -> list[dict[str, str]]:
        """Apply updates to the files on branch and return git tree entries."""
        entries: list[dict[str, str]] = []
        for update in updates:
            try:
                content: str | None = self.fetch_file_contents(update.path, branch)
            except FileNotFoundOnBranchError:
                if not update.create_if_missing:
                    warn(f"File '{update.path}' does not exist on branch '{branch}'")
                    continue
                content = None

            updated = update.updater.update_content(content)
            if updated:
                entries.append(
                    {
                        "path": update.path,
                        "mode": DEFAULT_FILE_MODE,
                        "type": "blob",
                        "content": updated,
                    }
                )
        return entries

    def _write_branch(
        self, head: str, base: str, commit_message: str, updates: list[Update]
    ) -> None:
        """Point head at a single new commit on top of base holding the updates."""
        base_sha = self._rest("GET", f"git/ref/heads/{quote(base)}")["object"]["sha"]
        base_tree = self._rest("GET", f"git/commits/{base_sha}")["tree"]["sha"]
        tree = self._rest(
            "POST",
            "git/trees",
            {"base_tree": base_tree, "tree": self._build_tree(updates, base)},
        )
        commit = self._rest(
            "POST",
            "git/commits",
            {"message": commit_message, "tree": tree["sha"], "parents": [base_sha]},
        )

        try:
            self._rest(
                "PATCH",
                f"git/refs/heads/{quote(head)}",
                {"sha": commit["sha"], "force": True},
            )
        except GitHubError as e:
            if e.status not in (404, 422):
                raise
            ref = {"ref": f"refs/heads/{head}", "sha": commit["sha"]}
            self._rest("POST", "git/refs", ref)

    def _open_pull_request_for(self, head: str) -> dict[str, Any] | None:
        owner = quote(f"{self.repository.owner}:{head}")
        found = self._rest("GET", f"pulls?state=open&head={owner}")
        return found[0] if found else None

    def create_pull_request(
        self, pull_request: PullRequest, commit_message: str, updates: list[Update]
    ) -> PullRequest:
        """Write the updates to the head branch and open a pull request for it."""
        head = pull_request.head_branch_name
        base = pull_request.base_branch_name
        self._write_branch(head, base, commit_message, updates)

        data = self._open_pull_request_for(head) or self._rest(
            "POST",
            "pulls",
            {
                "title": pull_request.title,
                "body": pull_request.body,
                "head": head,
                "base": base,
            },
        )
        if pull_request.labels:
            self.add_labels(data["number"], pull_request.labels)
        return self.retrieve_pull_request(data["number"])

    def update_pull_request(
        self,
        number: int,
        pull_request: PullRequest,
        commit_message: str,
        updates: list[Update],
    ) -> PullRequest:
        """Rewrite the head branch from scratch, then update title and body."""
        self._write_branch(
            pull_request.head_branch_name,
            pull_request.base_branch_name,
            commit_message,
            updates,
        )
        data = self._rest(
            "PATCH",
            f"pulls/{number}",
            {"title": pull_request.title, "body": pull_request.body, "state": "open"},
        )
        return _rest_pull_request(data)

    def retrieve_pull_request(self, number: int) -> PullRequest:
        return _rest_pull_request(self._rest("GET", f"pulls/{number}"))

    def create_release(self, release: Release) -> dict[str, Any]:
        """Publish a release; returns its id and url.

        Raises:
            DuplicateReleaseError: If a release for the tag already exists.
        """
        try:
            data = self._rest(
                "POST",
                "releases",
                {
                    "tag_name": release.tag,
                    "target_commitish": release.sha,
                    "name": release.tag,
                    "body": release.notes,
                },
            )
        except GitHubError as e:
            if e.status == 422 and "already_exists" in e.output:
                raise DuplicateReleaseError(release.tag) from e
            raise
        return {"id": data["id"], "url": data["html_url"]}

    def add_labels(self, number: int, labels: list[str]) -> None:
        self._rest("POST", f"issues/{number}/labels", {"labels": labels})

    def remove_labels(self, number: int, labels: list[str]) -> None:
        for label in labels:
            try:
                self._rest("DELETE", f"issues/{number}/labels/{quote(label, safe='')}")
            except GitHubError as e:
                # Already gone
                if e.status != 404:
                    raise
