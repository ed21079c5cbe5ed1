import logging

from jira_draft.application.ports.jira_port import JiraPort
from jira_draft.domain.ticket import ParsedTicket

logger = logging.getLogger(__name__)


class SubmitTicketUseCase:
    """파싱된 티켓으로 Jira 이슈를 생성하는 Use Case"""

    def __init__(self, jira_port: JiraPort):
        self.jira_port = jira_port

    async def execute(self, ticket: ParsedTicket) -> dict:
        """
        Jira 이슈를 생성합니다.

        Args:
            ticket: 편집 루프에서 검증된 티켓

        Returns:
            생성된 이슈 정보 (dict 형식)
        """
        logger.info("🚀 SubmitTicketUseCase 실행 시작")
        logger.info("전송 필드: %s", list(ticket.fields))

        issue = await self.jira_port.create_issue(ticket)

        logger.info("✅ Use Case 실행 완료: %s", issue.key)

        return {
            "key": issue.key,
            "self": issue.self_url,
            "url": issue.url,
        }
