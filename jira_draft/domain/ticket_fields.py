from enum import Enum
from typing import Any, Callable

from jira_draft.domain.errors import UnknownFieldError


class TicketField(Enum):
    SUMMARY = "summary"
    DESCRIPTION = "description"
    PROJECT = "project"
    COMPONENT = "component"
    ISSUETYPE = "issuetype"
    ASSIGNEE = "assignee"
    REPORTER = "reporter"
    PRIORITY = "priority"


def _text(value: str) -> str:
    return value


def _by_name(value: str) -> dict[str, str]:
    return {"name": value}


def _by_key(value: str) -> dict[str, str]:
    return {"key": value}


def _name_list(value: str) -> list[dict[str, str]]:
    return [{"name": value}]


# 필드별 (출력 키, 변환 함수). 고정 테이블이며 설정으로 바꿀 수 없음
_TRANSFORMS: dict[TicketField, tuple[str, Callable[[str], Any]]] = {
    TicketField.SUMMARY: ("summary", _text),
    TicketField.DESCRIPTION: ("description", _text),
    TicketField.PROJECT: ("project", _by_key),
    TicketField.COMPONENT: ("components", _name_list),
    TicketField.ISSUETYPE: ("issuetype", _by_name),
    TicketField.ASSIGNEE: ("assignee", _by_name),
    TicketField.REPORTER: ("reporter", _by_name),
    TicketField.PRIORITY: ("priority", _by_name),
}


def transform_field(key: str, value: str) -> tuple[str, Any]:
    """필드 키와 값을 Jira REST API 형식의 (키, 값)으로 변환합니다.

    Raises:
        UnknownFieldError: 등록되지 않은 필드 키인 경우
    """
    try:
        ticket_field = TicketField(key)
    except ValueError:
        raise UnknownFieldError(key) from None
    out_key, transform = _TRANSFORMS[ticket_field]
    return out_key, transform(value)
