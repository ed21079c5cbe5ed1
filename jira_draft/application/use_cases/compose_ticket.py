import hashlib
import logging
import os
import tempfile
from pathlib import Path

from jira_draft.application.ports.editor_port import EditorPort
from jira_draft.application.services.document_codec import DocumentCodec
from jira_draft.domain.errors import AbortedUnchangedError, DocumentError
from jira_draft.domain.ticket import ParsedTicket, TicketDraft

logger = logging.getLogger(__name__)

ERROR_PREFIX = "# ERROR: "


def _checksum(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def annotate_errors(content: str, error: Exception) -> str:
    """이전 오류 주석을 제거하고 새 오류 메시지를 주석으로 문서 맨 위에 붙입니다."""
    lines = content.splitlines(keepends=True)
    while lines and lines[0].startswith(ERROR_PREFIX):
        lines.pop(0)
    message_lines = str(error).splitlines() or [type(error).__name__]
    header = "".join(f"{ERROR_PREFIX}{line}\n" for line in message_lines)
    return header + "".join(lines)


class ComposeTicketUseCase:
    """편집기로 초안을 작성하고 파싱에 성공할 때까지 재편집을 반복하는 Use Case"""

    def __init__(
        self,
        editor: EditorPort,
        codec: DocumentCodec,
        noedit: bool = False,
        work_dir: str | Path | None = None,
    ):
        self.editor = editor
        self.codec = codec
        self.noedit = noedit
        self.work_dir = work_dir

    async def execute(self, draft: TicketDraft) -> ParsedTicket:
        """
        초안을 임시 파일에 쓰고 편집 루프를 실행합니다.

        Args:
            draft: 설정/옵션으로 미리 채운 초안

        Returns:
            파싱에 성공한 ParsedTicket

        Raises:
            AbortedUnchangedError: 편집기 종료 후 파일이 바뀌지 않은 경우
            EditorFailedError: 편집기가 실패한 경우
            DocumentError: noedit 모드에서 문서 파싱에 실패한 경우
        """
        path = self._write_draft(draft)
        logger.info("📝 초안 파일 생성: %s", path)

        try:
            ticket = await self._edit_loop(path)
        except BaseException:
            logger.warning("초안 파일 보존: %s", path)
            raise

        path.unlink(missing_ok=True)
        logger.info("✅ 초안 파싱 성공: 필드=%s", list(ticket.fields))
        return ticket

    async def _edit_loop(self, path: Path) -> ParsedTicket:
        if self.noedit:
            logger.info("편집기 생략 (noedit): 파일을 그대로 한 번만 파싱")
            return self.codec.decode(path.read_text(encoding="utf-8"))

        attempt = 0
        while True:
            attempt += 1
            before = _checksum(path)
            logger.info("편집기 실행: 시도=%d", attempt)
            await self.editor.edit(path)
            if _checksum(path) == before:
                raise AbortedUnchangedError(f"aborting: unchanged file ({path})")

            content = path.read_text(encoding="utf-8")
            try:
                return self.codec.decode(content)
            except DocumentError as e:
                logger.warning("문서 파싱 실패 → 재편집: %s", e)
                path.write_text(annotate_errors(content, e), encoding="utf-8")

    def _write_draft(self, draft: TicketDraft) -> Path:
        fd, name = tempfile.mkstemp(prefix="jira-draft-", suffix=".yml", dir=self.work_dir)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(self.codec.encode(draft))
        return Path(name)
