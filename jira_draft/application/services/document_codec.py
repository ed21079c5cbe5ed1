import logging
from datetime import date
from typing import Any

import yaml

from jira_draft.application.services.template_renderer import TemplateRenderer
from jira_draft.domain.errors import DocumentSyntaxError
from jira_draft.domain.ticket import ParsedTicket, TicketDraft
from jira_draft.domain.ticket_fields import TicketField, transform_field

logger = logging.getLogger(__name__)

# YAML이 자동 변환하는 스칼라(숫자, 날짜 등)는 텍스트로 되돌림
_SCALAR_TYPES = (str, int, float, bool, date)

DEFAULT_PRIORITIES: tuple[str, ...] = ("Blocker", "Critical", "Major", "Minor", "Trivial")


class DocumentCodec:
    """초안 문서 <-> ParsedTicket 양방향 변환기

    문서는 YAML 멀티 문서 스트림입니다. 각 섹션은 key: value 매핑이거나
    하나의 자유 텍스트 스칼라입니다.
    """

    def __init__(
        self,
        renderer: TemplateRenderer,
        priorities: tuple[str, ...] | list[str] = DEFAULT_PRIORITIES,
    ):
        self._renderer = renderer
        self._priorities = tuple(priorities)

    def encode(self, draft: TicketDraft) -> str:
        """초안을 편집 가능한 문서 텍스트로 변환합니다."""
        return self._renderer.render_draft(draft, self._priorities)

    def decode(self, text: str) -> ParsedTicket:
        """문서 텍스트를 파싱하여 ParsedTicket을 반환합니다.

        Raises:
            DocumentSyntaxError: YAML 문법 오류 또는 허용되지 않는 섹션/값 형식
            UnknownFieldError: 변환 규칙이 없는 필드 키
        """
        sections = self._load_sections(text)

        merged: dict[str, Any] = {}
        trailing_text: str | None = None
        for index, section in enumerate(sections, 1):
            if isinstance(section, dict):
                for key, value in section.items():
                    merged[str(key)] = self._scalar_value(index, key, value)
            elif isinstance(section, _SCALAR_TYPES):
                trailing_text = str(section)
            else:
                raise DocumentSyntaxError(
                    f"섹션 {index}: 매핑 또는 텍스트만 허용됩니다 ({type(section).__name__})"
                )

        # 매핑에 명시된 description이 비어 있지 않으면 그 값을 우선함
        description_key = TicketField.DESCRIPTION.value
        if trailing_text is not None and not merged.get(description_key):
            merged[description_key] = trailing_text

        fields: dict[str, Any] = {}
        for key, value in merged.items():
            if value is None or value == "":
                continue
            out_key, out_value = transform_field(key, value)
            fields[out_key] = out_value

        logger.info("문서 파싱 완료: 섹션=%d, 필드=%s", len(sections), list(fields))
        return ParsedTicket(fields=fields)

    @staticmethod
    def _load_sections(text: str) -> list[Any]:
        try:
            documents = list(yaml.safe_load_all(text))
        except yaml.YAMLError as e:
            raise DocumentSyntaxError(f"문서 문법 오류: {e}") from e
        return [doc for doc in documents if doc is not None]

    @staticmethod
    def _scalar_value(index: int, key: Any, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, _SCALAR_TYPES):
            return str(value)
        raise DocumentSyntaxError(
            f"섹션 {index}: '{key}' 값은 단일 텍스트여야 합니다 ({type(value).__name__})"
        )
