from .imports import fetch_remote_imports
from .includes import (
    IncludeFetchError,
    IncludeResolutionError,
    fetch_include,
    fetch_remote_includes,
    parse_include_directives,
)
from .workflow import (
    DEFAULT_REF,
    WorkflowFetchError,
    WorkflowNotFoundError,
    fetch_local_workflow,
    fetch_remote_workflow,
    fetch_workflow,
    resolve_default_ref,
)

__all__ = [
    "DEFAULT_REF",
    "IncludeFetchError",
    "IncludeResolutionError",
    "WorkflowFetchError",
    "WorkflowNotFoundError",
    "fetch_include",
    "fetch_local_workflow",
    "fetch_remote_imports",
    "fetch_remote_includes",
    "fetch_remote_workflow",
    "fetch_workflow",
    "parse_include_directives",
    "resolve_default_ref",
]
