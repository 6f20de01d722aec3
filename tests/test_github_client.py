from __future__ import annotations

import pytest
import requests

import remoteflow.github.client as client_module
from remoteflow.config import Settings
from remoteflow.github.client import GitHubAPIError, GitHubClient, RemoteSource

SHA = "0123456789abcdef0123456789abcdef01234567"


class _DummyResponse:
    def __init__(
        self,
        *,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
        content: bytes = b"",
        payload: object = None,
    ) -> None:
        self.status_code = status_code
        self.headers = headers or {}
        self.content = content
        self._payload = payload

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(response=self)

    def json(self):
        if self._payload is None:
            raise ValueError("no json payload")
        return self._payload


class _Recorder:
    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    def __call__(self, url, **kwargs):  # type: ignore[no-untyped-def]
        self.calls.append({"url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr(client_module.time, "sleep", sleeps.append)
    return sleeps


def _client(**settings) -> GitHubClient:
    return GitHubClient(
        Settings(api_url="https://api.example.test", max_attempts=3, **settings),
        token="secret",
    )


def test_client_satisfies_remote_source_protocol() -> None:
    assert isinstance(_client(), RemoteSource)


def test_download_file_requests_raw_contents(monkeypatch, no_sleep) -> None:
    recorder = _Recorder(_DummyResponse(content=b"# wf\n"))
    monkeypatch.setattr(client_module.requests, "get", recorder)

    content = _client().download_file("github", "gh-aw", "dir/my file.md", "v1.0.0")

    assert content == b"# wf\n"
    call = recorder.calls[0]
    assert call["url"] == (
        "https://api.example.test/repos/github/gh-aw/contents/dir/my%20file.md"
    )
    assert call["params"] == {"ref": "v1.0.0"}
    assert call["headers"]["Accept"] == "application/vnd.github.raw"
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert no_sleep == []


def test_anonymous_requests_send_no_authorization(monkeypatch) -> None:
    monkeypatch.setattr(client_module, "_get_token", lambda: None)
    recorder = _Recorder(_DummyResponse(content=b"x"))
    monkeypatch.setattr(client_module.requests, "get", recorder)

    GitHubClient(Settings(api_url="https://api.example.test")).download_file(
        "o", "r", "a.md", "main"
    )

    assert "Authorization" not in recorder.calls[0]["headers"]


def test_not_found_is_not_retried(monkeypatch, no_sleep) -> None:
    recorder = _Recorder(_DummyResponse(status_code=404))
    monkeypatch.setattr(client_module.requests, "get", recorder)

    with pytest.raises(GitHubAPIError) as excinfo:
        _client().download_file("o", "r", "missing.md", "main")

    assert excinfo.value.reason == "not_found"
    assert excinfo.value.status == 404
    assert len(recorder.calls) == 1


def test_transient_errors_are_retried(monkeypatch, no_sleep) -> None:
    recorder = _Recorder(
        requests.ConnectionError("reset"),
        _DummyResponse(status_code=503),
        _DummyResponse(content=b"ok"),
    )
    monkeypatch.setattr(client_module.requests, "get", recorder)

    assert _client().download_file("o", "r", "a.md", "main") == b"ok"
    assert len(recorder.calls) == 3
    assert len(no_sleep) == 2


def test_retries_stop_after_max_attempts(monkeypatch, no_sleep) -> None:
    recorder = _Recorder(*[_DummyResponse(status_code=502) for _ in range(3)])
    monkeypatch.setattr(client_module.requests, "get", recorder)

    with pytest.raises(requests.HTTPError):
        _client().download_file("o", "r", "a.md", "main")

    assert len(recorder.calls) == 3


def test_forbidden_without_rate_limit_fails_fast(monkeypatch, no_sleep) -> None:
    recorder = _Recorder(_DummyResponse(status_code=403))
    monkeypatch.setattr(client_module.requests, "get", recorder)

    with pytest.raises(GitHubAPIError) as excinfo:
        _client().download_file("o", "r", "a.md", "main")

    assert excinfo.value.reason == "forbidden"
    assert no_sleep == []


def test_rate_limited_request_honours_retry_after(monkeypatch, no_sleep) -> None:
    recorder = _Recorder(
        _DummyResponse(
            status_code=403,
            headers={"X-RateLimit-Remaining": "0", "Retry-After": "7"},
        ),
        _DummyResponse(content=b"ok"),
    )
    monkeypatch.setattr(client_module.requests, "get", recorder)

    assert _client().download_file("o", "r", "a.md", "main") == b"ok"
    assert no_sleep == [7.0]


def test_unauthorized(monkeypatch, no_sleep) -> None:
    monkeypatch.setattr(
        client_module.requests, "get", _Recorder(_DummyResponse(status_code=401))
    )

    with pytest.raises(GitHubAPIError) as excinfo:
        _client().resolve_ref_to_sha("o", "r", "main")

    assert excinfo.value.reason == "unauthorized"


def test_resolve_ref_to_sha(monkeypatch) -> None:
    recorder = _Recorder(_DummyResponse(content=(SHA + "\n").encode()))
    monkeypatch.setattr(client_module.requests, "get", recorder)

    assert _client().resolve_ref_to_sha("o", "r", "release/v1") == SHA
    assert recorder.calls[0]["url"].endswith("/repos/o/r/commits/release%2Fv1")
    assert recorder.calls[0]["headers"]["Accept"] == "application/vnd.github.sha"


def test_resolve_ref_rejects_malformed_sha(monkeypatch) -> None:
    monkeypatch.setattr(
        client_module.requests, "get", _Recorder(_DummyResponse(content=b"<html>"))
    )

    with pytest.raises(GitHubAPIError) as excinfo:
        _client().resolve_ref_to_sha("o", "r", "main")

    assert excinfo.value.reason == "bad_response"


def test_default_branch(monkeypatch) -> None:
    recorder = _Recorder(_DummyResponse(payload={"default_branch": "trunk"}))
    monkeypatch.setattr(client_module.requests, "get", recorder)

    assert _client().default_branch("githubnext/agentics") == "trunk"
    assert recorder.calls[0]["url"] == "https://api.example.test/repos/githubnext/agentics"


@pytest.mark.parametrize("payload", [{}, {"default_branch": ""}, ["main"]])
def test_default_branch_bad_payload(monkeypatch, payload) -> None:
    monkeypatch.setattr(
        client_module.requests, "get", _Recorder(_DummyResponse(payload=payload))
    )

    with pytest.raises(GitHubAPIError) as excinfo:
        _client().default_branch("o/r")

    assert excinfo.value.reason == "bad_response"


def test_token_prefers_gh_token(monkeypatch) -> None:
    monkeypatch.setattr(client_module, "_load_dotenv", lambda: None)
    monkeypatch.setenv("GH_TOKEN", "from-gh")
    monkeypatch.setenv("GITHUB_TOKEN", "from-github")
    assert client_module._get_token() == "from-gh"

    monkeypatch.delenv("GH_TOKEN")
    assert client_module._get_token() == "from-github"
