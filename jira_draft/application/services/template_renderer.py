import logging
from pathlib import Path

import yaml
from jinja2 import BaseLoader, Environment, Undefined

from jira_draft.domain.errors import ConfigError
from jira_draft.domain.ticket import TicketDraft

logger = logging.getLogger(__name__)


DEFAULT_DRAFT_TEMPLATE = """\
# priority: {{ priorities | join(", ") }}
summary: {{ summary | yaml_value }}
--- {{ description | yaml_block_header }}  # description (두 칸 들여쓰기)
{{ description | yaml_block_text | indent(2, first=true) }}
---
project: {{ project | yaml_value }}
component: {{ component | yaml_value }}
issuetype: {{ issuetype | yaml_value }}
assignee: {{ assignee | yaml_value }}
reporter: {{ reporter | yaml_value }}
priority: {{ priority | yaml_value }}
"""


class LoggingUndefined(Undefined):
    """미치환 변수 접근 시 경고 로그를 출력합니다."""
    def __str__(self) -> str:
        logger.warning("템플릿 미치환 변수: %s", self._undefined_name)
        return ""


def yaml_value(value) -> str:
    """값을 한 줄짜리 YAML 스칼라로 직렬화합니다. None/Undefined는 빈 값입니다."""
    if value is None or isinstance(value, Undefined):
        return ""
    dumped = yaml.safe_dump(value, allow_unicode=True, width=1 << 16)
    # 최상위 스칼라는 문서 종료 마커가 붙음
    if dumped.endswith("\n...\n"):
        dumped = dumped[: -len("\n...\n")]
    return dumped.strip()


def _block_source(value) -> str:
    if value is None or isinstance(value, Undefined):
        return ""
    return str(value)


def yaml_block_header(value) -> str:
    """두 칸 들여쓰기 블록 스칼라 헤더를 만듭니다.

    들여쓰기를 명시해야 첫 줄이 공백으로 시작하는 본문도 그대로 보존됩니다.
    본문이 줄바꿈으로 끝나면 keep(+), 아니면 strip(-) 방식을 씁니다.
    """
    return "|2+" if _block_source(value).endswith("\n") else "|2-"


def yaml_block_text(value) -> str:
    """블록 스칼라 본문. 템플릿의 다음 줄바꿈이 마지막 줄바꿈 하나를 대신합니다."""
    text = _block_source(value)
    return text[:-1] if text.endswith("\n") else text


class TemplateRenderer:
    """Jinja2 기반 초안 문서 렌더러"""

    def __init__(self, template_path: str | Path | None = None):
        self._template_path = Path(template_path) if template_path else None
        self._env = Environment(
            loader=BaseLoader(),
            undefined=LoggingUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        self._env.filters["yaml_value"] = yaml_value
        self._env.filters["yaml_block_header"] = yaml_block_header
        self._env.filters["yaml_block_text"] = yaml_block_text

    def _load_source(self) -> str:
        if self._template_path is None:
            return DEFAULT_DRAFT_TEMPLATE
        try:
            source = self._template_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"초안 템플릿을 읽을 수 없습니다: {self._template_path}") from e
        logger.info("사용자 템플릿 로드: %s", self._template_path)
        return source

    def render_draft(self, draft: TicketDraft, priorities: list[str] | tuple[str, ...]) -> str:
        """초안 티켓을 편집 가능한 문서로 렌더링합니다."""
        template = self._env.from_string(self._load_source())
        rendered = template.render(priorities=list(priorities), **draft.as_dict())
        logger.info("초안 렌더링 완료: 길이=%d", len(rendered))
        return rendered
