from .model import Directive, FetchedWorkflow, RepoSpec, WorkflowSpec
from .paths import (
    PathContainmentError,
    PathTraversalError,
    RemotePath,
    UnsafePathError,
    assert_contained,
    is_pinned_reference,
    join_remote,
    parent_dir,
    reject_traversal,
    remote_to_local,
    split_ref,
    split_section,
)
from .spec import (
    InvalidWorkflowSpecError,
    is_local_workflow_path,
    parse_workflow_spec,
    workflow_name_from_path,
)

__all__ = [
    "Directive",
    "FetchedWorkflow",
    "InvalidWorkflowSpecError",
    "PathContainmentError",
    "PathTraversalError",
    "RemotePath",
    "RepoSpec",
    "UnsafePathError",
    "WorkflowSpec",
    "assert_contained",
    "is_local_workflow_path",
    "is_pinned_reference",
    "join_remote",
    "parent_dir",
    "parse_workflow_spec",
    "reject_traversal",
    "remote_to_local",
    "split_ref",
    "split_section",
    "workflow_name_from_path",
]
