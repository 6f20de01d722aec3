"""YAML frontmatter extraction for workflow markdown files."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml


class FrontmatterError(ValueError):
    pass


@dataclass(frozen=True)
class FrontmatterResult:
    frontmatter: dict[str, Any] | None
    markdown: str


def parse_frontmatter(text: str) -> FrontmatterResult:
    """Split ``text`` into its frontmatter mapping and markdown body.

    Content without a leading ``---`` line has no frontmatter. An unterminated
    block, invalid YAML or a non-mapping document raises FrontmatterError.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return FrontmatterResult(frontmatter=None, markdown=text)

    end_idx = None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            end_idx = i
            break
    if end_idx is None:
        raise FrontmatterError("frontmatter not properly closed")

    yaml_text = "".join(lines[1:end_idx])
    markdown = "".join(lines[end_idx + 1 :])
    if not yaml_text.strip():
        return FrontmatterResult(frontmatter={}, markdown=markdown)

    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"invalid frontmatter YAML: {exc}") from exc
    if data is None:
        return FrontmatterResult(frontmatter={}, markdown=markdown)
    if not isinstance(data, dict):
        raise FrontmatterError("frontmatter must be a mapping")
    return FrontmatterResult(frontmatter=data, markdown=markdown)


def import_paths(frontmatter: dict[str, Any] | None) -> list[str]:
    if not frontmatter:
        return []
    field = frontmatter.get("imports")
    if not isinstance(field, (list, tuple)):
        return []
    return [item for item in field if isinstance(item, str)]
