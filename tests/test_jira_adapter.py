import asyncio
import base64
import json

import httpx
import pytest

from jira_draft.adapters.outbound.file_cookie_store import FileCookieStore
from jira_draft.adapters.outbound.jira_adapter import JiraAdapter
from jira_draft.application.use_cases.submit_ticket import SubmitTicketUseCase
from jira_draft.domain.errors import (
    AuthenticationFailedError,
    RequestFailedError,
    ResponseDecodeError,
)
from jira_draft.domain.ticket import ParsedTicket

BASE_URL = "https://jira.example.com"
TICKET = ParsedTicket(fields={"summary": "Crash", "project": {"key": "PROJ"}})
CREATED = {"id": "10000", "key": "PROJ-1", "self": f"{BASE_URL}/rest/api/2/issue/10000"}
ANONYMOUS = {"X-AUSERNAME": "anonymous"}


class FakePrompt:
    def __init__(self, password="s3cret"):
        self.password = password
        self.calls = []

    def ask(self, user):
        self.calls.append(user)
        return self.password


class Recorder:
    """MockTransport handler: 준비된 응답을 순서대로 돌려주고 요청을 기록합니다."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return self.responses.pop(0)


def _adapter(tmp_path, handler, prompt=None):
    return JiraAdapter(
        base_url=f"{BASE_URL}/",
        user="alice",
        password_prompt=prompt or FakePrompt(),
        cookie_store=FileCookieStore(tmp_path / "cookies.txt"),
        transport=httpx.MockTransport(handler),
    )


def test_create_issue_posts_fields_as_json(tmp_path):
    handler = Recorder(httpx.Response(201, json=CREATED))
    prompt = FakePrompt()

    issue = asyncio.run(_adapter(tmp_path, handler, prompt).create_issue(TICKET))

    request = handler.requests[0]
    assert request.method == "POST"
    assert str(request.url) == f"{BASE_URL}/rest/api/2/issue"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert json.loads(request.content) == {"fields": TICKET.fields}
    assert "Authorization" not in request.headers
    assert issue.key == "PROJ-1"
    assert issue.self_url == CREATED["self"]
    assert issue.url == f"{BASE_URL}/browse/PROJ-1"
    assert prompt.calls == []


def test_anonymous_failure_retries_once_with_basic_auth(tmp_path):
    handler = Recorder(
        httpx.Response(401, headers=ANONYMOUS),
        httpx.Response(201, json=CREATED),
    )
    prompt = FakePrompt("s3cret")

    issue = asyncio.run(_adapter(tmp_path, handler, prompt).create_issue(TICKET))

    assert issue.key == "PROJ-1"
    assert prompt.calls == ["alice"]
    assert len(handler.requests) == 2
    expected = "Basic " + base64.b64encode(b"alice:s3cret").decode()
    assert handler.requests[1].headers["Authorization"] == expected
    assert json.loads(handler.requests[1].content) == {"fields": TICKET.fields}


def test_failure_without_anonymous_header_does_not_retry(tmp_path):
    handler = Recorder(httpx.Response(400, text='{"errors": {"project": "required"}}'))
    prompt = FakePrompt()

    with pytest.raises(RequestFailedError) as exc_info:
        asyncio.run(_adapter(tmp_path, handler, prompt).create_issue(TICKET))

    assert len(handler.requests) == 1
    assert prompt.calls == []
    assert exc_info.value.status_code == 400
    assert "required" in exc_info.value.body


def test_rejected_credentials_fail_after_single_retry(tmp_path):
    handler = Recorder(
        httpx.Response(401, headers=ANONYMOUS),
        httpx.Response(401, headers=ANONYMOUS, text="Unauthorized (bad password)"),
    )

    with pytest.raises(AuthenticationFailedError) as exc_info:
        asyncio.run(_adapter(tmp_path, handler).create_issue(TICKET))

    assert len(handler.requests) == 2
    assert exc_info.value.status_code == 401
    assert exc_info.value.body == "Unauthorized (bad password)"


def test_authenticated_request_error_is_request_failure(tmp_path):
    handler = Recorder(
        httpx.Response(401, headers=ANONYMOUS),
        httpx.Response(400, text="bad field"),
    )

    with pytest.raises(RequestFailedError) as exc_info:
        asyncio.run(_adapter(tmp_path, handler).create_issue(TICKET))

    assert exc_info.value.status_code == 400
    assert not isinstance(exc_info.value, AuthenticationFailedError)


def test_undecodable_success_body(tmp_path):
    handler = Recorder(httpx.Response(201, content=b"<html>not json</html>"))

    with pytest.raises(ResponseDecodeError):
        asyncio.run(_adapter(tmp_path, handler).create_issue(TICKET))


def test_success_body_without_key(tmp_path):
    handler = Recorder(httpx.Response(201, json={"id": "10000"}))

    with pytest.raises(ResponseDecodeError, match="key"):
        asyncio.run(_adapter(tmp_path, handler).create_issue(TICKET))


def test_transport_error_is_fatal(tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RequestFailedError, match="연결 실패"):
        asyncio.run(_adapter(tmp_path, handler).create_issue(TICKET))


def test_session_cookie_is_persisted_and_reused(tmp_path):
    first = Recorder(
        httpx.Response(401, headers=ANONYMOUS),
        httpx.Response(201, json=CREATED, headers={"Set-Cookie": "JSESSIONID=abc123; Path=/"}),
    )
    asyncio.run(_adapter(tmp_path, first).create_issue(TICKET))

    stored = {c.name: c for c in FileCookieStore(tmp_path / "cookies.txt").load()}
    assert stored["JSESSIONID"].value == "abc123"
    assert stored["JSESSIONID"].expires is not None

    second = Recorder(httpx.Response(201, json=CREATED))
    prompt = FakePrompt()
    asyncio.run(_adapter(tmp_path, second, prompt).create_issue(TICKET))

    assert "JSESSIONID=abc123" in second.requests[0].headers["Cookie"]
    assert prompt.calls == []


def test_submit_use_case_returns_issue_dict(tmp_path):
    handler = Recorder(httpx.Response(201, json=CREATED))
    use_case = SubmitTicketUseCase(jira_port=_adapter(tmp_path, handler))

    result = asyncio.run(use_case.execute(TICKET))

    assert result == {
        "key": "PROJ-1",
        "self": CREATED["self"],
        "url": f"{BASE_URL}/browse/PROJ-1",
    }
