import asyncio
import logging
import shlex
from pathlib import Path

from jira_draft.domain.errors import EditorFailedError

logger = logging.getLogger(__name__)


class ExternalEditorAdapter:
    """설정된 외부 편집기를 subprocess로 실행하는 Adapter"""

    def __init__(self, command: str):
        """
        Args:
            command: 편집기 명령 (예: "vim", "code --wait"). 파일 경로가 마지막 인자로 붙습니다.
        """
        self.command = command

    async def edit(self, path: Path) -> None:
        """편집기를 실행하고 종료될 때까지 기다립니다. timeout은 없습니다.

        Raises:
            EditorFailedError: 편집기를 실행할 수 없거나 0이 아닌 코드로 종료된 경우
        """
        argv = shlex.split(self.command) + [str(path)]
        logger.info("편집기 명령: %s", argv)
        try:
            # stdin/stdout을 상속해야 터미널 편집기가 동작함
            proc = await asyncio.create_subprocess_exec(*argv)
        except OSError as e:
            raise EditorFailedError(f"편집기를 실행할 수 없습니다: {self.command} ({e})") from e

        returncode = await proc.wait()
        if returncode != 0:
            raise EditorFailedError(
                f"편집기가 비정상 종료되었습니다: {self.command} (exit {returncode})",
                returncode=returncode,
            )
        logger.info("편집기 종료: exit %d", returncode)
