"""Resolution of ``@include`` / ``@include?`` directives in workflow bodies.

Relative includes always resolve against the top-level workflow spec, at
every depth. Imports (see ``imports.py``) re-anchor at each fetched file.
"""

from __future__ import annotations

import logging
import os
import posixpath
import re
import sys
from pathlib import Path

from ..github.client import FETCH_ERRORS, GitHubClient, RemoteSource
from ..references.model import Directive, WorkflowSpec
from ..references.paths import (
    UnsafePathError,
    assert_contained,
    is_pinned_reference,
    parent_dir,
    reject_traversal,
    split_ref,
    split_section,
)
from ..tracker import FileTracker

logger = logging.getLogger(__name__)

_INCLUDE_RE = re.compile(r"^@include(\?)?\s+(.+)$")
_DEFAULT_INCLUDE_REF = "main"


class IncludeFetchError(ValueError):
    """A single include could not be fetched; ``section`` is still populated."""

    def __init__(self, message: str, *, include_path: str, section: str = ""):
        self.include_path = include_path
        self.section = section
        super().__init__(message)


class IncludeResolutionError(ValueError):
    """A required include is missing; aborts include resolution."""

    def __init__(self, include_path: str, cause: Exception):
        self.include_path = include_path
        super().__init__(f"failed to fetch include {include_path}: {cause}")


def _log(message: str) -> None:
    from ..runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[includes] {message}", file=sys.stderr, flush=True)


def parse_include_directives(content: str) -> list[Directive]:
    directives: list[Directive] = []
    for line in content.splitlines():
        match = _INCLUDE_RE.match(line)
        if not match:
            continue
        raw_path = match.group(2).strip()
        _, section = split_section(raw_path)
        directives.append(
            Directive(
                raw_path=raw_path,
                optional=match.group(1) == "?",
                section=section,
            )
        )
    return directives


def fetch_include(
    include_path: str,
    base_spec: WorkflowSpec | None,
    *,
    source: RemoteSource,
) -> tuple[bytes, str]:
    """Fetch one include and return ``(content, section)``.

    ``include_path`` is either pinned (``owner/repo/path[@ref]``) or relative to
    ``base_spec``. The ``#section`` suffix is split off before anything else so
    it is reported identically on success and on failure.
    """
    logger.debug("fetching include: path=%s, base=%s", include_path, base_spec)
    clean_path, section = split_section(include_path)

    if is_pinned_reference(clean_path):
        path_part, ref = split_ref(clean_path)
        ref = ref or _DEFAULT_INCLUDE_REF
        segments = path_part.split("/")
        if len(segments) < 3:
            raise IncludeFetchError(
                "invalid workflowspec: must be owner/repo/path[@ref]",
                include_path=include_path,
                section=section,
            )
        owner, repo = segments[0], segments[1]
        file_path = "/".join(segments[2:])
        try:
            content = source.download_file(owner, repo, file_path, ref)
        except FETCH_ERRORS as exc:
            raise IncludeFetchError(
                f"failed to fetch include from {include_path}: {exc}",
                include_path=include_path,
                section=section,
            ) from exc
        return content, section

    parts = base_spec.repo.owner_and_repo() if base_spec is not None else None
    if parts is None:
        raise IncludeFetchError(
            f"cannot resolve include path: {include_path} (no base spec provided)",
            include_path=include_path,
            section=section,
        )

    owner, repo = parts
    ref = base_spec.repo.version or _DEFAULT_INCLUDE_REF
    full_path = _remote_include_path(clean_path, base_spec)
    try:
        content = source.download_file(owner, repo, full_path, ref)
    except FETCH_ERRORS as exc:
        raise IncludeFetchError(
            f"failed to fetch include {clean_path} from {owner}/{repo}: {exc}",
            include_path=include_path,
            section=section,
        ) from exc
    return content, section


def _remote_include_path(file_path: str, base_spec: WorkflowSpec) -> str:
    if file_path.startswith("shared/"):
        return ".github/" + file_path
    base_dir = parent_dir(base_spec.workflow_path)
    if base_dir:
        return f"{base_dir}/{file_path}"
    return file_path


def _local_include_path(file_path: str, target_dir: Path) -> tuple[Path, Path]:
    """Return ``(root, target_path)`` for an include; target must stay under root."""
    if file_path.startswith("shared/"):
        root = target_dir.parent
        return root, root / Path(*file_path.split("/"))
    if is_pinned_reference(file_path):
        path_part, _ = split_ref(file_path)
        filename = path_part.rsplit("/", 1)[-1]
        root = target_dir.parent
        return root, root / "shared" / filename
    return target_dir, target_dir / Path(*file_path.split("/"))


def fetch_remote_includes(
    content: str,
    spec: WorkflowSpec,
    target_dir: str | Path,
    *,
    force: bool = False,
    tracker: FileTracker | None = None,
    source: RemoteSource | None = None,
    seen: set[str] | None = None,
) -> None:
    """Fetch and write every include reachable from ``content``.

    A missing required include raises IncludeResolutionError. Missing optional
    includes and unsafe paths are logged and skipped. Nested includes share
    ``seen`` with the top-level call, so cycles terminate even with ``force``.
    """
    logger.debug("fetching remote includes for workflow: %s", spec)
    source = source or GitHubClient()
    target_dir = Path(target_dir)
    if seen is None:
        seen = set()

    for directive in parse_include_directives(content):
        include_path = directive.raw_path
        file_path, _ = split_section(include_path)
        if not file_path or file_path in seen:
            continue
        seen.add(file_path)

        root, target_path = _local_include_path(file_path, target_dir)
        try:
            if not is_pinned_reference(file_path):
                reject_traversal(posixpath.normpath(file_path))
            assert_contained(root, target_path)
        except UnsafePathError as exc:
            _log(f"Skipping include with unsafe path: {include_path!r} ({exc})")
            continue

        try:
            include_content, _ = fetch_include(include_path, spec, source=source)
        except IncludeFetchError as exc:
            if directive.optional:
                _log(f"Optional include not found: {include_path}")
                continue
            raise IncludeResolutionError(include_path, exc) from exc

        os.makedirs(target_path.parent, exist_ok=True)

        original: bytes | None = None
        file_exists = target_path.exists()
        if file_exists:
            if not force:
                _log(f"Include file already exists, skipping: {target_path}")
                continue
            original = target_path.read_bytes()

        target_path.write_bytes(include_content)
        _log(f"Fetched include: {target_path}")

        if tracker is not None:
            if file_exists:
                tracker.track_modified(target_path, original)
            else:
                tracker.track_created(target_path)

        try:
            fetch_remote_includes(
                include_content.decode("utf-8", errors="replace"),
                spec,
                target_dir,
                force=force,
                tracker=tracker,
                source=source,
                seen=seen,
            )
        except (IncludeResolutionError, OSError) as exc:
            _log(f"Failed to fetch nested includes from {file_path}: {exc}")
