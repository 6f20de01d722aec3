from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RepoSpec:
    """Repository coordinate of a workflow.

    ``repo_slug`` is ``owner/repo`` (empty for local workflows). ``version`` is
    a branch, tag or commit SHA; empty means "use the default branch", and the
    resolved branch is written back here once known.
    """

    repo_slug: str = ""
    version: str = ""

    def owner_and_repo(self) -> tuple[str, str] | None:
        parts = self.repo_slug.split("/", 1)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            return None
        return parts[0], parts[1]


@dataclass
class WorkflowSpec:
    repo: RepoSpec = field(default_factory=RepoSpec)
    workflow_path: str = ""
    workflow_name: str = ""

    @property
    def is_remote(self) -> bool:
        return bool(self.repo.repo_slug)

    def __str__(self) -> str:
        if not self.repo.repo_slug:
            return self.workflow_path
        spec = f"{self.repo.repo_slug}/{self.workflow_path}"
        if self.repo.version:
            spec += f"@{self.repo.version}"
        return spec


@dataclass(frozen=True)
class FetchedWorkflow:
    content: bytes
    commit_sha: str
    is_local: bool
    source_path: str

    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Directive:
    raw_path: str
    optional: bool = False
    section: str = ""
