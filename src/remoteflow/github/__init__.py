from .client import FETCH_ERRORS, GitHubAPIError, GitHubClient, RemoteSource

__all__ = ["FETCH_ERRORS", "GitHubAPIError", "GitHubClient", "RemoteSource"]
