from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .github.client import GitHubClient, RemoteSource
from .references.model import WorkflowSpec
from .references.paths import assert_contained
from .resolve.imports import fetch_remote_imports
from .resolve.includes import fetch_remote_includes
from .resolve.workflow import fetch_workflow
from .tracker import FileTracker


class WorkflowExistsError(ValueError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"workflow '{path}' already exists (use --force to overwrite)")


@dataclass(frozen=True)
class AddResult:
    workflow_path: str
    source_path: str
    commit_sha: str
    is_local: bool
    written_files: list[str] = field(default_factory=list)


def _log(message: str) -> None:
    from .runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[install] {message}", file=sys.stderr, flush=True)


def add_workflow(
    spec: WorkflowSpec,
    target_dir: str | Path,
    *,
    force: bool = False,
    tracker: FileTracker | None = None,
    source: RemoteSource | None = None,
    fetch_includes: bool = True,
    fetch_imports: bool = True,
) -> AddResult:
    """Fetch a workflow into ``target_dir`` together with its includes and imports."""
    target_dir = Path(target_dir)
    source = source or GitHubClient()
    tracker = tracker if tracker is not None else FileTracker(git_root=str(target_dir))

    already_tracked = set(tracker.all_files)
    fetched = fetch_workflow(spec, source=source)
    if not fetched.is_local and fetched.source_path != spec.workflow_path:
        # a fallback location was used; anchor relative lookups there
        spec.workflow_path = fetched.source_path

    name = spec.workflow_name or Path(fetched.source_path).stem
    workflow_path = target_dir / f"{name}.md"
    assert_contained(target_dir, workflow_path)

    file_exists = workflow_path.exists()
    if file_exists and not force:
        raise WorkflowExistsError(workflow_path)
    original = workflow_path.read_bytes() if file_exists else None

    os.makedirs(target_dir, exist_ok=True)
    workflow_path.write_bytes(fetched.content)
    if file_exists:
        tracker.track_modified(workflow_path, original)
    else:
        tracker.track_created(workflow_path)
    _log(f"Wrote workflow: {workflow_path}")

    if not fetched.is_local:
        content = fetched.text()
        if fetch_includes:
            fetch_remote_includes(
                content,
                spec,
                target_dir,
                force=force,
                tracker=tracker,
                source=source,
            )
        if fetch_imports:
            fetch_remote_imports(
                content,
                spec,
                target_dir,
                force=force,
                tracker=tracker,
                source=source,
            )

    return AddResult(
        workflow_path=str(workflow_path),
        source_path=fetched.source_path,
        commit_sha=fetched.commit_sha,
        is_local=fetched.is_local,
        written_files=[
            path for path in tracker.all_files if path not in already_tracked
        ],
    )
