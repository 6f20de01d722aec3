"""Best-effort resolution of the frontmatter ``imports:`` list.

Relative imports resolve against the directory of the file that lists them,
so every fetched file becomes the anchor for its own imports. Local paths are
always computed against the top-level workflow's directory, which keeps the
written tree shaped like the source tree below that directory.

Nothing here raises for a single bad entry: fetch, write and path-safety
failures are logged and the entry is skipped. The compiler reports any import
that is still missing afterwards.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from ..frontmatter import FrontmatterError, import_paths, parse_frontmatter
from ..github.client import FETCH_ERRORS, GitHubClient, RemoteSource
from ..references.model import WorkflowSpec
from ..references.paths import (
    RemotePath,
    UnsafePathError,
    assert_contained,
    is_pinned_reference,
    join_remote,
    parent_dir,
    reject_traversal,
    remote_to_local,
    split_section,
)
from ..tracker import FileTracker
from .workflow import resolve_default_ref

logger = logging.getLogger(__name__)


def _log(message: str) -> None:
    from ..runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[imports] {message}", file=sys.stderr, flush=True)


def fetch_remote_imports(
    content: str,
    spec: WorkflowSpec,
    target_dir: str | Path,
    *,
    force: bool = False,
    tracker: FileTracker | None = None,
    source: RemoteSource | None = None,
    seen: set[str] | None = None,
) -> None:
    """Fetch every file transitively listed under ``imports:`` into ``target_dir``.

    ``seen`` holds fully resolved remote paths and is shared by the whole
    recursion; pass nothing to start a fresh resolution.
    """
    if not spec.repo.repo_slug:
        return
    parts = spec.repo.owner_and_repo()
    if parts is None:
        return
    owner, repo = parts

    try:
        entries = import_paths(parse_frontmatter(content).frontmatter)
    except FrontmatterError:
        return
    if not entries:
        return

    source = source or GitHubClient()
    ref = resolve_default_ref(spec, source)

    workflow_base_dir = parent_dir(spec.workflow_path)
    if seen is None:
        seen = set()
    _fetch_imports_recursive(
        content,
        owner=owner,
        repo=repo,
        ref=ref,
        current_base_dir=workflow_base_dir,
        original_base_dir=workflow_base_dir,
        target_dir=Path(target_dir),
        force=force,
        tracker=tracker,
        source=source,
        seen=seen,
    )


def _fetch_imports_recursive(
    content: str,
    *,
    owner: str,
    repo: str,
    ref: str,
    current_base_dir: str,
    original_base_dir: str,
    target_dir: Path,
    force: bool,
    tracker: FileTracker | None,
    source: RemoteSource,
    seen: set[str],
) -> None:
    try:
        result = parse_frontmatter(content)
    except FrontmatterError as exc:
        logger.debug("skipping imports, frontmatter unreadable: %s", exc)
        return

    for import_path in import_paths(result.frontmatter):
        if is_pinned_reference(import_path):
            continue

        file_path, _ = split_section(import_path)
        if not file_path:
            continue

        remote_path = join_remote(current_base_dir, file_path)
        try:
            reject_traversal(remote_path)
        except UnsafePathError:
            _log(f"Skipping import with unsafe path: {import_path!r}")
            continue

        if remote_path in seen:
            continue
        seen.add(remote_path)

        try:
            target_path = remote_to_local(remote_path, original_base_dir, target_dir)
            assert_contained(target_dir, target_path)
        except UnsafePathError:
            _log(f"Refusing to write import outside target directory: {import_path!r}")
            continue

        imported = _materialize_import(
            remote_path,
            target_path,
            owner=owner,
            repo=repo,
            ref=ref,
            force=force,
            tracker=tracker,
            source=source,
        )
        if imported is None:
            continue

        _fetch_imports_recursive(
            imported.decode("utf-8", errors="replace"),
            owner=owner,
            repo=repo,
            ref=ref,
            current_base_dir=parent_dir(remote_path),
            original_base_dir=original_base_dir,
            target_dir=target_dir,
            force=force,
            tracker=tracker,
            source=source,
            seen=seen,
        )


def _materialize_import(
    remote_path: RemotePath,
    target_path: Path,
    *,
    owner: str,
    repo: str,
    ref: str,
    force: bool,
    tracker: FileTracker | None,
    source: RemoteSource,
) -> bytes | None:
    """Download and write one import; None means skipped or failed."""
    file_exists = target_path.exists()
    if file_exists and not force:
        _log(f"Import file already exists, skipping: {target_path}")
        return None

    try:
        content = source.download_file(owner, repo, remote_path, ref)
    except FETCH_ERRORS as exc:
        _log(f"Failed to fetch import {remote_path}: {exc}")
        return None

    try:
        original = target_path.read_bytes() if file_exists else None
        os.makedirs(target_path.parent, exist_ok=True)
        target_path.write_bytes(content)
    except OSError as exc:
        _log(f"Failed to write import {remote_path}: {exc}")
        return None

    _log(f"Fetched import: {target_path}")
    if tracker is not None:
        if file_exists:
            tracker.track_modified(target_path, original)
        else:
            tracker.track_created(target_path)
    return content
