from dataclasses import dataclass
from functools import lru_cache

from jira_draft.adapters.outbound.external_editor_adapter import ExternalEditorAdapter
from jira_draft.adapters.outbound.file_cookie_store import FileCookieStore
from jira_draft.adapters.outbound.jira_adapter import JiraAdapter
from jira_draft.adapters.outbound.terminal_password_prompt import TerminalPasswordPrompt
from jira_draft.application.services.document_codec import DocumentCodec
from jira_draft.application.services.template_renderer import TemplateRenderer
from jira_draft.application.use_cases.compose_ticket import ComposeTicketUseCase
from jira_draft.application.use_cases.submit_ticket import SubmitTicketUseCase
from jira_draft.configuration.settings import Settings
from jira_draft.domain.ticket import TicketDraft


@dataclass(frozen=True)
class Container:
    settings: Settings
    initial_draft: TicketDraft
    compose_ticket_use_case: ComposeTicketUseCase
    submit_ticket_use_case: SubmitTicketUseCase


def build_initial_draft(settings: Settings) -> TicketDraft:
    return TicketDraft(
        summary=settings.summary,
        description=settings.description,
        project=settings.project,
        component=settings.component,
        issuetype=settings.issuetype,
        assignee=settings.assignee,
        reporter=settings.reporter,
        priority=settings.priority,
    )


@lru_cache(maxsize=1)
def build_container(settings: Settings) -> Container:
    # 문서 변환: 템플릿 렌더러 + 코덱
    renderer = TemplateRenderer(template_path=settings.template)
    codec = DocumentCodec(renderer=renderer, priorities=settings.priorities)

    editor = ExternalEditorAdapter(command=settings.editor)

    jira_adapter = JiraAdapter(
        base_url=settings.endpoint,
        user=settings.user,
        password_prompt=TerminalPasswordPrompt(),
        cookie_store=FileCookieStore(settings.cookie_file),
    )

    compose_ticket_use_case = ComposeTicketUseCase(
        editor=editor,
        codec=codec,
        noedit=settings.noedit,
    )

    submit_ticket_use_case = SubmitTicketUseCase(
        jira_port=jira_adapter,
    )

    return Container(
        settings=settings,
        initial_draft=build_initial_draft(settings),
        compose_ticket_use_case=compose_ticket_use_case,
        submit_ticket_use_case=submit_ticket_use_case,
    )


def clear_container() -> None:
    build_container.cache_clear()
