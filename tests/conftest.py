from __future__ import annotations

import pytest

from remoteflow.github.client import GitHubAPIError


class FakeSource:
    """In-memory RemoteSource keyed by (owner/repo, path, ref)."""

    def __init__(
        self,
        files: dict[str, bytes | str] | None = None,
        *,
        repo_slug: str = "github/gh-aw",
        ref: str = "main",
        sha: str | None = "0123456789abcdef0123456789abcdef01234567",
        default_branch: str | None = "main",
    ) -> None:
        self.repo_slug = repo_slug
        self.files: dict[tuple[str, str, str], bytes] = {}
        for path, content in (files or {}).items():
            self.add(path, content, ref=ref)
        self.sha = sha
        self._default_branch = default_branch
        self.downloads: list[tuple[str, str, str, str]] = []
        self.sha_lookups: list[tuple[str, str, str]] = []
        self.branch_lookups: list[str] = []

    def add(
        self,
        path: str,
        content: bytes | str,
        *,
        ref: str = "main",
        repo_slug: str | None = None,
    ) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.files[(repo_slug or self.repo_slug, path, ref)] = content

    def download_file(self, owner: str, repo: str, path: str, ref: str) -> bytes:
        self.downloads.append((owner, repo, path, ref))
        key = (f"{owner}/{repo}", path, ref)
        if key not in self.files:
            raise GitHubAPIError("not_found", path=path, status=404)
        return self.files[key]

    def resolve_ref_to_sha(self, owner: str, repo: str, ref: str) -> str:
        self.sha_lookups.append((owner, repo, ref))
        if self.sha is None:
            raise GitHubAPIError("not_found", path=ref, status=404)
        return self.sha

    def default_branch(self, repo_slug: str) -> str:
        self.branch_lookups.append(repo_slug)
        if self._default_branch is None:
            raise GitHubAPIError("not_found", path=repo_slug, status=404)
        return self._default_branch

    def downloaded_paths(self) -> list[str]:
        return [path for _, _, path, _ in self.downloads]


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def make_source():
    return FakeSource
