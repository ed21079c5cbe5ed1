import json
import logging

import httpx

from jira_draft.adapters.outbound.file_cookie_store import FileCookieStore
from jira_draft.application.ports.password_prompt_port import PasswordPromptPort
from jira_draft.domain.errors import (
    AuthenticationFailedError,
    RequestFailedError,
    ResponseDecodeError,
)
from jira_draft.domain.ticket import CreatedIssue, ParsedTicket

logger = logging.getLogger(__name__)

_JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

# 인증되지 않은 요청에 대해 Jira가 돌려주는 사용자명 헤더
_USERNAME_HEADER = "X-AUSERNAME"
_ANONYMOUS = "anonymous"


class JiraAdapter:
    """Jira REST API로 이슈를 생성하는 Outbound Adapter"""

    def __init__(
        self,
        base_url: str,
        user: str,
        password_prompt: PasswordPromptPort,
        cookie_store: FileCookieStore,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user = user
        self.password_prompt = password_prompt
        self.cookie_store = cookie_store
        self._transport = transport

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    async def create_issue(self, ticket: ParsedTicket) -> CreatedIssue:
        """
        이슈를 생성합니다.

        먼저 저장된 쿠키만으로 요청하고, 응답이 실패이면서 익명 사용자로
        처리되었다면 Basic 인증 헤더를 붙여 같은 요청을 한 번만 재전송합니다.
        """
        url = f"{self.base_url}/rest/api/2/issue"
        body = json.dumps(ticket.to_payload()).encode("utf-8")

        logger.info("🌐 Jira 이슈 생성 API 호출 시작")
        logger.info("URL: %s", url)
        logger.info("User: %s", self.user)

        async with self._client() as client:
            request = client.build_request("POST", url, content=body, headers=_JSON_HEADERS)
            response = await self._send(client, request)
            logger.info("HTTP Status: %d", response.status_code)

            authenticated = False
            if response.is_error and self._is_anonymous(response):
                logger.info("🔐 익명 접근으로 처리됨 → Basic 인증으로 재시도")
                password = self.password_prompt.ask(self.user)
                response = await self._send(
                    client, request, auth=httpx.BasicAuth(self.user, password)
                )
                authenticated = True
                logger.info("HTTP Status (인증 재시도): %d", response.status_code)

            self.cookie_store.save(client.cookies.jar)

        if response.is_error:
            self._raise_jira_error(response, authenticated)

        issue = self._parse_created(response)
        logger.info("✅ Jira 이슈 생성 성공: %s", issue.key)
        return issue

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """저장된 쿠키가 설정된 httpx.AsyncClient를 반환합니다. timeout은 없습니다."""
        return httpx.AsyncClient(
            cookies=self.cookie_store.load(),
            timeout=None,
            transport=self._transport,
        )

    async def _send(
        self,
        client: httpx.AsyncClient,
        request: httpx.Request,
        **kwargs,
    ) -> httpx.Response:
        try:
            return await client.send(request, **kwargs)
        except httpx.TransportError as e:
            logger.error("❌ 네트워크 오류: %s", str(e))
            raise RequestFailedError(f"Jira 서버 연결 실패: {self.base_url} ({e})") from e

    @staticmethod
    def _is_anonymous(response: httpx.Response) -> bool:
        return response.headers.get(_USERNAME_HEADER, "").lower() == _ANONYMOUS

    def _raise_jira_error(self, response: httpx.Response, authenticated: bool) -> None:
        """HTTP 상태 코드별 적절한 오류를 발생시킵니다."""
        status = response.status_code
        logger.error("❌ HTTP 오류 발생: %d", status)
        logger.error("응답 본문: %s", response.text[:500])
        if authenticated and (status in (401, 403) or self._is_anonymous(response)):
            raise AuthenticationFailedError(
                f"Jira 인증 실패: 사용자명 또는 비밀번호를 확인하세요 (user={self.user}, HTTP {status})",
                status_code=status,
                body=response.text,
            )
        raise RequestFailedError(
            f"Jira API 오류: {status}",
            status_code=status,
            body=response.text,
        )

    def _parse_created(self, response: httpx.Response) -> CreatedIssue:
        """생성 응답을 CreatedIssue 엔티티로 파싱합니다."""
        try:
            data = response.json()
        except ValueError as e:
            raise ResponseDecodeError(f"Jira 응답을 해석할 수 없습니다: {response.text[:200]}") from e

        if not isinstance(data, dict) or not data.get("key") or not data.get("self"):
            raise ResponseDecodeError(f"Jira 응답에 key/self 필드가 없습니다: {response.text[:200]}")

        key = data["key"]
        return CreatedIssue(
            key=key,
            self_url=data["self"],
            url=f"{self.base_url}/browse/{key}",
        )
