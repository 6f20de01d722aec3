from __future__ import annotations

import logging
import sys

from ..github.client import FETCH_ERRORS, GitHubClient, RemoteSource
from ..references.model import FetchedWorkflow, WorkflowSpec
from ..references.spec import InvalidWorkflowSpecError, is_local_workflow_path

logger = logging.getLogger(__name__)

DEFAULT_REF = "main"
_FALLBACK_PREFIXES = ("workflows/", ".github/workflows/")


class WorkflowNotFoundError(ValueError):
    def __init__(self, path: str, cause: Exception | None = None):
        self.path = path
        message = f"local workflow '{path}' not found"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class WorkflowFetchError(ValueError):
    def __init__(self, owner: str, repo: str, path: str, ref: str, cause: Exception):
        self.owner = owner
        self.repo = repo
        self.path = path
        self.ref = ref
        super().__init__(
            f"failed to download workflow from {owner}/{repo}/{path}@{ref}: {cause}"
        )


def _log(message: str) -> None:
    from ..runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[workflow] {message}", file=sys.stderr, flush=True)


def resolve_default_ref(spec: WorkflowSpec, source: RemoteSource) -> str:
    """Return the ref to fetch from, resolving and pinning the default branch."""
    if spec.repo.version:
        return spec.repo.version
    try:
        ref = source.default_branch(spec.repo.repo_slug)
    except FETCH_ERRORS as exc:
        logger.debug(
            "failed to resolve default branch for %s, using %r: %s",
            spec.repo.repo_slug,
            DEFAULT_REF,
            exc,
        )
        ref = DEFAULT_REF
    spec.repo.version = ref
    return ref


def fetch_workflow(
    spec: WorkflowSpec, *, source: RemoteSource | None = None
) -> FetchedWorkflow:
    """Fetch the top-level workflow from disk or from its source repository."""
    logger.debug("fetching workflow: spec=%s", spec)
    if is_local_workflow_path(spec.workflow_path) or not spec.repo.repo_slug:
        return fetch_local_workflow(spec)
    return fetch_remote_workflow(spec, source=source or GitHubClient())


def fetch_local_workflow(spec: WorkflowSpec) -> FetchedWorkflow:
    _log(f"Reading local workflow: {spec.workflow_path}")
    try:
        with open(spec.workflow_path, "rb") as fh:
            content = fh.read()
    except OSError as exc:
        raise WorkflowNotFoundError(spec.workflow_path, exc) from exc

    return FetchedWorkflow(
        content=content,
        commit_sha="",
        is_local=True,
        source_path=spec.workflow_path,
    )


def _fallback_paths(path: str) -> list[str]:
    if "/" in path or path.startswith("workflows/"):
        return []
    candidates = []
    for prefix in _FALLBACK_PREFIXES:
        alt = prefix + path
        if not alt.endswith(".md"):
            alt += ".md"
        candidates.append(alt)
    return candidates


def fetch_remote_workflow(
    spec: WorkflowSpec, *, source: RemoteSource
) -> FetchedWorkflow:
    parts = spec.repo.owner_and_repo()
    if parts is None:
        raise InvalidWorkflowSpecError(
            f"invalid repository slug: {spec.repo.repo_slug}", spec=str(spec)
        )
    owner, repo = parts
    ref = resolve_default_ref(spec, source)
    _log(f"Fetching {owner}/{repo}/{spec.workflow_path}@{ref}...")

    try:
        commit_sha = source.resolve_ref_to_sha(owner, repo, ref)
    except FETCH_ERRORS as exc:
        # the file download can still succeed without a pinned SHA
        logger.debug("failed to resolve ref %s to SHA: %s", ref, exc)
        commit_sha = ""
    else:
        _log(f"Resolved to commit: {commit_sha[:7]}")

    try:
        content = source.download_file(owner, repo, spec.workflow_path, ref)
    except FETCH_ERRORS as exc:
        for alt_path in _fallback_paths(spec.workflow_path):
            logger.debug("direct path failed, trying: %s", alt_path)
            try:
                alt_content = source.download_file(owner, repo, alt_path, ref)
            except FETCH_ERRORS:
                continue
            _log(f"Downloaded workflow from {alt_path} ({len(alt_content)} bytes)")
            return FetchedWorkflow(
                content=alt_content,
                commit_sha=commit_sha,
                is_local=False,
                source_path=alt_path,
            )
        raise WorkflowFetchError(owner, repo, spec.workflow_path, ref, exc) from exc

    _log(f"Downloaded workflow ({len(content)} bytes)")
    return FetchedWorkflow(
        content=content,
        commit_sha=commit_sha,
        is_local=False,
        source_path=spec.workflow_path,
    )
