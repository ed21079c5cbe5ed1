from pathlib import Path
from typing import Protocol


class EditorPort(Protocol):
    """외부 편집기 실행 계약"""

    async def edit(self, path: Path) -> None:
        """파일을 편집기로 열고 편집기가 종료될 때까지 기다립니다."""
        ...
