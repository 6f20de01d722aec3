from __future__ import annotations

import json
import os
import random
import sys
import time
from typing import Protocol, runtime_checkable
from urllib.parse import quote

import requests

from ..config import DEFAULT_API_URL, Settings

_RAW_MEDIA_TYPE = "application/vnd.github.raw"
_SHA_MEDIA_TYPE = "application/vnd.github.sha"
_JSON_MEDIA_TYPE = "application/vnd.github+json"
_USER_AGENT = "remoteflow (+https://github.com/remoteflow/remoteflow)"
_TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


class GitHubAPIError(ValueError):
    def __init__(self, reason: str, *, path: str | None = None, status: int | None = None):
        self.reason = reason
        self.path = path
        self.status = status
        message_by_reason = {
            "not_found": "GitHub resource not found",
            "unauthorized": "GitHub API authorization failed",
            "forbidden": "GitHub API forbidden (rate limited or insufficient permissions)",
            "bad_response": "GitHub API returned an unexpected response",
        }
        message = message_by_reason.get(reason, "GitHub API request failed")
        if path:
            message = f"{message}: {path}"
        super().__init__(message)


@runtime_checkable
class RemoteSource(Protocol):
    def download_file(self, owner: str, repo: str, path: str, ref: str) -> bytes: ...
    def resolve_ref_to_sha(self, owner: str, repo: str, ref: str) -> str: ...
    def default_branch(self, repo_slug: str) -> str: ...


def _log(message: str) -> None:
    from ..runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[github] {message}", file=sys.stderr, flush=True)


def _load_dotenv() -> None:
    from dotenv import find_dotenv, load_dotenv

    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=False)


def _get_token() -> str | None:
    _load_dotenv()
    for name in ("GH_TOKEN", "GITHUB_TOKEN"):
        token = (os.environ.get(name) or "").strip()
        if token:
            return token
    return None


def _retry_delay_seconds(attempt: int) -> float:
    base = min(30.0, 1.0 * (2 ** max(0, attempt - 1)))
    return base + random.uniform(0.0, 0.25)


def _retry_after_seconds(resp: object, attempt: int) -> float:
    headers = getattr(resp, "headers", None) or {}
    retry_after = headers.get("Retry-After")
    if retry_after:
        try:
            return max(0.0, float(retry_after))
        except ValueError:
            pass
    reset = headers.get("X-RateLimit-Reset")
    if reset and headers.get("X-RateLimit-Remaining") == "0":
        try:
            return min(60.0, max(0.0, float(reset) - time.time()))
        except ValueError:
            pass
    return _retry_delay_seconds(attempt)


def _quote_path(path: str) -> str:
    return "/".join(quote(part, safe="") for part in path.split("/"))


class GitHubClient:
    """Fetches files and refs through the GitHub REST API."""

    def __init__(self, settings: Settings | None = None, *, token: str | None = None):
        settings = settings or Settings()
        self.api_url = (settings.api_url or DEFAULT_API_URL).rstrip("/")
        self.timeout = settings.timeout
        self.max_attempts = max(1, settings.max_attempts)
        self._token = token

    def _headers(self, accept: str) -> dict[str, str]:
        headers = {
            "Accept": accept,
            "User-Agent": _USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        token = self._token or _get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _get(self, path: str, *, accept: str, params: dict | None = None):
        url = f"{self.api_url}{path}"
        headers = self._headers(accept)

        last_exc: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                resp = requests.get(
                    url, headers=headers, params=params, timeout=self.timeout
                )
            except requests.exceptions.RequestException as exc:
                last_exc = exc
                if attempt >= self.max_attempts:
                    break
                wait = _retry_delay_seconds(attempt)
                _log(
                    f"request failed ({type(exc).__name__}); retrying in {wait:.1f}s "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                time.sleep(wait)
                continue

            if resp.status_code == 404:
                raise GitHubAPIError("not_found", path=path, status=404)
            if resp.status_code == 401:
                raise GitHubAPIError("unauthorized", path=path, status=401)
            if resp.status_code == 403:
                rate_limited = resp.headers.get("X-RateLimit-Remaining") == "0"
                if not rate_limited or attempt >= self.max_attempts:
                    raise GitHubAPIError("forbidden", path=path, status=403)

            retryable = resp.status_code in _TRANSIENT_STATUSES or (
                resp.status_code == 403
            )
            if retryable and attempt < self.max_attempts:
                wait = _retry_after_seconds(resp, attempt)
                _log(
                    f"API returned {resp.status_code}; retrying in {wait:.1f}s "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                time.sleep(wait)
                continue

            resp.raise_for_status()
            return resp

        if last_exc is not None:
            raise last_exc
        raise RuntimeError(f"GitHub request failed unexpectedly for {path}")

    def download_file(self, owner: str, repo: str, path: str, ref: str) -> bytes:
        api_path = f"/repos/{owner}/{repo}/contents/{_quote_path(path)}"
        resp = self._get(api_path, accept=_RAW_MEDIA_TYPE, params={"ref": ref})
        return resp.content

    def resolve_ref_to_sha(self, owner: str, repo: str, ref: str) -> str:
        api_path = f"/repos/{owner}/{repo}/commits/{quote(ref, safe='')}"
        resp = self._get(api_path, accept=_SHA_MEDIA_TYPE)
        sha = resp.text.strip()
        if len(sha) != 40:
            raise GitHubAPIError("bad_response", path=api_path)
        return sha

    def default_branch(self, repo_slug: str) -> str:
        api_path = f"/repos/{repo_slug}"
        resp = self._get(api_path, accept=_JSON_MEDIA_TYPE)
        try:
            payload = resp.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise GitHubAPIError("bad_response", path=api_path) from exc
        branch = payload.get("default_branch") if isinstance(payload, dict) else None
        if not isinstance(branch, str) or not branch:
            raise GitHubAPIError("bad_response", path=api_path)
        return branch


# Errors a RemoteSource may raise for a failed lookup; requests exceptions are
# OSError subclasses.
FETCH_ERRORS: tuple[type[Exception], ...] = (ValueError, OSError, RuntimeError)
