from dataclasses import dataclass, field, fields
from typing import Any


@dataclass
class TicketDraft:
    """편집기에서 사용자가 수정하는 티켓 초안"""
    summary: str | None = None
    description: str | None = None
    project: str | None = None
    component: str | None = None
    issuetype: str | None = None
    assignee: str | None = None
    reporter: str | None = None
    priority: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class ParsedTicket:
    """Jira에 전송 가능한 형태로 검증/변환된 티켓"""
    fields: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {"fields": self.fields}


@dataclass(frozen=True)
class CreatedIssue:
    """이슈 생성 결과 엔티티"""
    key: str
    self_url: str
    url: str
