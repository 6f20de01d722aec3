from __future__ import annotations

import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path


def _log(message: str) -> None:
    from .runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[tracker] {message}", file=sys.stderr, flush=True)


def _run_git(repo_root: str, args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", "-C", repo_root, *args], check=True, capture_output=True, text=True
    )


def get_repo_root(start_path: str) -> str | None:
    path = start_path if not os.path.isfile(start_path) else os.path.dirname(start_path)
    try:
        return _run_git(path, ["rev-parse", "--show-toplevel"]).stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError):
        return None


@dataclass
class FileTracker:
    """Records files written during a resolution for staging or rollback."""

    git_root: str
    created_files: list[str] = field(default_factory=list)
    modified_files: list[str] = field(default_factory=list)
    original_content: dict[str, bytes] = field(default_factory=dict)

    @classmethod
    def for_path(cls, path: str | Path) -> "FileTracker":
        start = os.path.abspath(path)
        while not os.path.exists(start):
            parent = os.path.dirname(start)
            if parent == start:
                break
            start = parent
        return cls(git_root=get_repo_root(start) or start)

    def track_created(self, path: str | Path) -> None:
        key = os.path.abspath(path)
        if key in self.created_files or key in self.modified_files:
            return
        self.created_files.append(key)

    def track_modified(self, path: str | Path, original: bytes | None = None) -> None:
        key = os.path.abspath(path)
        if key in self.created_files:
            return
        if original is not None and key not in self.original_content:
            self.original_content[key] = original
        if key not in self.modified_files:
            self.modified_files.append(key)

    @property
    def all_files(self) -> list[str]:
        return [*self.created_files, *self.modified_files]

    def stage_all(self) -> None:
        files = [
            os.path.relpath(path, self.git_root)
            for path in self.all_files
            if os.path.exists(path)
        ]
        if not files:
            return
        _log(f"Staging {len(files)} file(s) in {self.git_root}")
        _run_git(self.git_root, ["add", "--", *files])

    def rollback(self) -> None:
        for path in reversed(self.created_files):
            try:
                os.remove(path)
            except FileNotFoundError:
                continue
            _log(f"Removed {path}")
        for path in self.modified_files:
            original = self.original_content.get(path)
            if original is None:
                continue
            Path(path).write_bytes(original)
            _log(f"Restored {path}")
        self.created_files.clear()
        self.modified_files.clear()
        self.original_content.clear()
