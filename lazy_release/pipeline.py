"""Release flow: resolve → decide → render → stage → reconcile, and publish.

The "release-pr" flow keeps a single pending release pull request up to date:
1. Resolve the previous release and the unreleased commits on the target branch
2. Decide the bump kind and the next version
3. Render the changelog entry and wrap it into the pull request body
4. Let the strategy stage the file edits (changelog, manifest, lockfile)
5. Create the release pull request, update it, or leave it alone if unchanged

The "github-release" flow publishes merged release pull requests as GitHub
releases and swaps their pending label for the tagged one.
"""

from __future__ import annotations

import semver

from .body import wrap_body
from .changelog import PullRequestNoteBuilder, build_changelog
from .config import ReleaseConfig
from .exceptions import DuplicateReleaseError
from .github import GitHub
from .models import PullRequest, Release, ReleasePullRequest
from .release_context import determine_release_context
from .releases import determine_releases
from .shell import info, step, warn
from .strategies import UpdateOptions, build_strategy, validate_strategy
from .versioning import SemanticVersioningStrategy
from .versions import bump


def release_title(target_branch: str, version: semver.Version) -> str:
    return f"chore({target_branch}): release {version}"


def build_release_pull_request(
    github: GitHub, config: ReleaseConfig, target_branch: str
) -> ReleasePullRequest | None:
    """Plan the release pull request for target_branch.

    Returns:
        The planned pull request, or None when nothing was merged since the
        previous release.
    """
    step(f"Resolving unreleased commits on '{target_branch}'")
    context = determine_release_context(github, target_branch, config.max_commits)
    if not context.unreleased_commits:
        info(f"No unreleased commits since {context.previous_release}")
        return None
    print(
        f"  previous release: {context.previous_release}, "
        f"{len(context.unreleased_commits)} unreleased commits"
    )

    kind = SemanticVersioningStrategy().release_type(context.unreleased_commits)
    version = bump(context.previous_release, kind)
    print(f"  {kind.value} bump: {context.previous_release} → {version}")

    step("Rendering changelog")
    changelog = build_changelog(
        context.unreleased_commits, PullRequestNoteBuilder(), version
    )
    print(changelog)

    strategy = build_strategy(config.strategy, github, config.changelog_path)
    updates = strategy.determine_updates(
        UpdateOptions(
            changelog_entry=changelog,
            release_version=version,
            target_branch=target_branch,
        )
    )

    return ReleasePullRequest(
        title=release_title(target_branch, version),
        body=wrap_body(changelog),
        head_branch_name=config.release_branch_name(target_branch),
        base_branch_name=target_branch,
        labels=[config.label_pending],
        version=version,
        updates=updates,
    )


def find_pending_pull_request(
    github: GitHub, config: ReleaseConfig, target_branch: str
) -> PullRequest | None:
    """The open release pull request for target_branch, if there is one.

    Raises:
        GitHubError: If the open pull requests cannot be read.
    """
    head = config.release_branch_name(target_branch)
    for pull_request in github.pull_requests(target_branch, "OPEN", strict=True):
        if (
            pull_request.head_branch_name == head
            and config.label_pending in pull_request.labels
        ):
            return pull_request
    return None


def reconcile_pull_request(
    github: GitHub, config: ReleaseConfig, plan: ReleasePullRequest
) -> PullRequest:
    """Create, update, or keep the pending release pull request.

    Only title and body are compared: an existing pull request with the same
    title and body is left untouched.
    """
    step("Reconciling release pull request")
    existing = find_pending_pull_request(github, config, plan.base_branch_name)

    if existing is None:
        created = github.create_pull_request(
            plan.as_pull_request(), plan.title, plan.updates
        )
        print(f"  created #{created.number}")
        return created

    if existing.title == plan.title and existing.body == plan.body:
        print(f"  #{existing.number} is up to date")
        return existing

    updated = github.update_pull_request(
        existing.number, plan.as_pull_request(existing.number), plan.title, plan.updates
    )
    print(f"  updated #{updated.number}")
    return updated


def run_release_pr(github: GitHub, config: ReleaseConfig) -> PullRequest | None:
    """Execute the release pull request flow.

    Returns:
        The pending release pull request, or None if there was nothing to release.
    """
    # Fail on a bad strategy key before talking to GitHub
    validate_strategy(config.strategy)

    target_branch = config.target_branch or github.default_branch()
    plan = build_release_pull_request(github, config, target_branch)
    if plan is None:
        return None
    return reconcile_pull_request(github, config, plan)


def publish_release(github: GitHub, config: ReleaseConfig, release: Release) -> bool:
    """Create the GitHub release and mark its pull request as tagged.

    Returns:
        True if the release was created, False if it already existed.
    """
    created = True
    try:
        result = github.create_release(release)
        print(f"  {release.tag}: {result['url']}")
    except DuplicateReleaseError:
        warn(f"{release.tag} was already released")
        created = False

    github.remove_labels(release.pull_request_number, [config.label_pending])
    github.add_labels(release.pull_request_number, [config.label_tagged])
    return created


def run_github_release(github: GitHub, config: ReleaseConfig) -> list[Release]:
    """Execute the publish flow.

    Returns:
        The releases that were newly created.
    """
    target_branch = config.target_branch or github.default_branch()

    step(f"Finding merged release pull requests on '{target_branch}'")
    releases = determine_releases(
        github,
        target_branch,
        config.release_branch_prefix,
        config.label_pending,
        config.release_history_depth,
    )
    if not releases:
        info("No releases to publish")
        return []

    step(f"Publishing {len(releases)} releases")
    return [release for release in releases if publish_release(github, config, release)]
