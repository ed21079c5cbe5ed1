from typing import Protocol


class PasswordPromptPort(Protocol):
    """인증 요청 시 비밀번호를 얻는 계약"""

    def ask(self, user: str) -> str:
        """사용자에게 비밀번호를 입력받아 반환합니다."""
        ...
