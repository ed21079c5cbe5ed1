from typing import Protocol

from jira_draft.domain.ticket import CreatedIssue, ParsedTicket


class JiraPort(Protocol):
    """Jira 서비스와의 계약을 정의하는 Port"""

    async def create_issue(self, ticket: ParsedTicket) -> CreatedIssue:
        """이슈를 생성합니다. 필요 시 인증 재시도를 한 번 수행합니다."""
        ...
