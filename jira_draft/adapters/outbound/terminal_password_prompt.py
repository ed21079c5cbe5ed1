import io
import logging
import os
import sys
from contextlib import contextmanager
from typing import Callable, Iterator, TextIO

from jira_draft.domain.errors import TerminalUnavailableError

try:
    import termios
except ImportError:  # Windows 등 POSIX 터미널 제어가 없는 환경
    termios = None

logger = logging.getLogger(__name__)

_CONTROLLING_TTY = "/dev/tty"


class EchoGuard:
    """터미널 입력 echo를 끄고, 어떤 경로로 빠져나가든 한 번만 복원하는 guard"""

    def __init__(self, fd: int):
        self._fd = fd
        self._saved = None

    def __enter__(self) -> "EchoGuard":
        if termios is None:
            raise TerminalUnavailableError("터미널 echo를 제어할 수 없어 비밀번호를 입력받을 수 없습니다")
        try:
            self._saved = termios.tcgetattr(self._fd)
        except termios.error as e:
            raise TerminalUnavailableError(f"could not determine terminal: {e}") from e
        attrs = termios.tcgetattr(self._fd)
        attrs[3] &= ~termios.ECHO
        termios.tcsetattr(self._fd, termios.TCSAFLUSH, attrs)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        termios.tcsetattr(self._fd, termios.TCSAFLUSH, saved)


def _open_terminal() -> tuple[TextIO, TextIO, bool]:
    """(입력, 출력, 직접 연 파일 여부)를 반환합니다."""
    if sys.stdin.isatty() and sys.stdout.isatty():
        return sys.stdin, sys.stdout, False
    try:
        fd = os.open(_CONTROLLING_TTY, os.O_RDWR | os.O_NOCTTY)
    except OSError as e:
        raise TerminalUnavailableError("could not determine terminal") from e
    tty = io.TextIOWrapper(io.FileIO(fd, "w+"), encoding="utf-8")
    return tty, tty, True


class TerminalPasswordPrompt:
    """터미널에서 echo 없이 비밀번호를 입력받는 Adapter"""

    def __init__(self, open_terminal: Callable[[], tuple[TextIO, TextIO, bool]] = _open_terminal):
        self._open_terminal = open_terminal

    def ask(self, user: str) -> str:
        """
        비밀번호를 한 줄 입력받습니다.

        Raises:
            TerminalUnavailableError: 터미널을 열 수 없거나 echo를 끌 수 없는 경우
        """
        with self._terminal() as (reader, writer):
            with EchoGuard(reader.fileno()):
                writer.write(f"Jira password [{user}]: ")
                writer.flush()
                line = reader.readline()
                writer.write("\n")
                writer.flush()
        logger.info("비밀번호 입력 완료: user=%s", user)
        return line.rstrip("\r\n")

    @contextmanager
    def _terminal(self) -> Iterator[tuple[TextIO, TextIO]]:
        reader, writer, owned = self._open_terminal()
        try:
            yield reader, writer
        finally:
            if owned:
                reader.close()
                if writer is not reader:
                    writer.close()
