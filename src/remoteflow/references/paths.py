"""Pure path helpers shared by the include and import resolvers.

Remote paths are forward-slash repository paths (``RemotePath``); local write
locations are ``pathlib.Path``. ``remote_to_local`` is the only place one is
turned into the other.
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import NewType

RemotePath = NewType("RemotePath", str)


class UnsafePathError(ValueError):
    def __init__(self, message: str, *, path: str):
        self.path = path
        super().__init__(f"{message}: {path!r}")


class PathTraversalError(UnsafePathError):
    pass


class PathContainmentError(UnsafePathError):
    pass


def split_section(ref: str) -> tuple[str, str]:
    idx = ref.find("#")
    if idx == -1:
        return ref, ""
    return ref[:idx], ref[idx:]


def split_ref(path: str) -> tuple[str, str]:
    base, sep, ref = path.partition("@")
    return base, ref if sep else ""


def is_pinned_reference(path: str) -> bool:
    """True for ``owner/repo/path[@ref]`` references."""
    if "@" in path:
        return True
    clean, _ = split_section(path)
    if len(clean.split("/")) < 3:
        return False
    if clean.startswith((".", "/", "shared/")):
        return False
    return True


def parent_dir(path: str) -> str:
    idx = path.rfind("/")
    if idx == -1:
        return ""
    return path[:idx]


def join_remote(base_dir: str, rel_path: str) -> RemotePath:
    if rel_path.startswith("/"):
        joined = rel_path[1:]
    elif base_dir:
        joined = posixpath.join(base_dir, rel_path)
    else:
        joined = rel_path
    normalized = posixpath.normpath(joined) if joined else "."
    # normpath keeps a leading "//"; repository paths never carry one
    return RemotePath(normalized.lstrip("/") or ".")


def reject_traversal(remote_path: str) -> None:
    if remote_path == ".." or remote_path.startswith("../"):
        raise PathTraversalError("path escapes repository root", path=remote_path)


def remote_to_local(
    remote_path: RemotePath, original_base_dir: str, target_dir: str | Path
) -> Path:
    prefix = f"{original_base_dir}/" if original_base_dir else ""
    if prefix and remote_path.startswith(prefix):
        rel = remote_path[len(prefix) :]
    else:
        rel = str(remote_path)

    local_rel = os.path.normpath(rel.replace("/", os.sep)).lstrip(os.sep)
    if local_rel in {"", "."}:
        raise PathTraversalError("path resolves to the target directory", path=rel)
    if local_rel == os.pardir or local_rel.startswith(os.pardir + os.sep):
        raise PathTraversalError("path escapes target directory", path=rel)
    return Path(target_dir) / local_rel


def assert_contained(target_dir: str | Path, candidate: str | Path) -> None:
    abs_target = os.path.abspath(target_dir)
    abs_candidate = os.path.abspath(candidate)
    try:
        rel = os.path.relpath(abs_candidate, abs_target)
    except ValueError as exc:
        # different drives on Windows
        raise PathContainmentError(
            "path is outside target directory", path=str(candidate)
        ) from exc
    if rel == os.curdir or rel == os.pardir or rel.startswith(os.pardir + os.sep):
        raise PathContainmentError(
            "path is outside target directory", path=str(candidate)
        )
