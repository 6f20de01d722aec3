from __future__ import annotations

import os
import re

from .model import RepoSpec, WorkflowSpec
from .paths import split_ref

_WINDOWS_DRIVE_RE = re.compile(r"^[A-Za-z]:[\\/]")
_SLUG_PART_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class InvalidWorkflowSpecError(ValueError):
    def __init__(self, message: str, *, spec: str | None = None):
        self.spec = spec
        super().__init__(message)


def looks_like_windows_drive(spec: str) -> bool:
    return bool(_WINDOWS_DRIVE_RE.match(spec))


def is_local_workflow_path(path: str) -> bool:
    if not path:
        return False
    if path.startswith(("./", "../", "/", "~", ".\\", "..\\")):
        return True
    return looks_like_windows_drive(path) or os.path.isabs(path)


def workflow_name_from_path(path: str) -> str:
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if name.endswith(".md"):
        name = name[:-3]
    return name


def parse_workflow_spec(text: str) -> WorkflowSpec:
    """Parse ``owner/repo/path[@ref]`` or a local path into a WorkflowSpec."""
    raw = text.strip()
    if not raw:
        raise InvalidWorkflowSpecError("empty workflow spec", spec=text)

    if is_local_workflow_path(raw):
        path = os.path.expanduser(raw)
        return WorkflowSpec(
            repo=RepoSpec(),
            workflow_path=path,
            workflow_name=workflow_name_from_path(path),
        )

    path_part, ref = split_ref(raw)
    if "@" in raw and not ref:
        raise InvalidWorkflowSpecError(f"missing ref after '@': {raw}", spec=text)

    segments = path_part.split("/")
    if len(segments) < 3 or any(not segment for segment in segments):
        raise InvalidWorkflowSpecError(
            f"invalid workflow spec: {raw} (expected owner/repo/path[@ref])",
            spec=text,
        )

    owner, repo = segments[0], segments[1]
    for part in (owner, repo):
        if not _SLUG_PART_RE.match(part):
            raise InvalidWorkflowSpecError(
                f"invalid repository slug: {owner}/{repo}", spec=text
            )

    workflow_path = "/".join(segments[2:])
    return WorkflowSpec(
        repo=RepoSpec(repo_slug=f"{owner}/{repo}", version=ref),
        workflow_path=workflow_path,
        workflow_name=workflow_name_from_path(workflow_path),
    )
