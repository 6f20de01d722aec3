from pathlib import Path


def fetch(spec: str) -> bytes:
    from .references.spec import parse_workflow_spec
    from .resolve.workflow import fetch_workflow

    return fetch_workflow(parse_workflow_spec(spec)).content


def add(
    spec: str,
    *,
    dir: str | Path = ".github/workflows",
    force: bool = False,
    includes: bool = True,
    imports: bool = True,
) -> Path:
    from .install import add_workflow
    from .references.spec import parse_workflow_spec

    result = add_workflow(
        parse_workflow_spec(spec),
        dir,
        force=force,
        fetch_includes=includes,
        fetch_imports=imports,
    )
    return Path(result.workflow_path)


__all__ = [
    "fetch",
    "add",
]
