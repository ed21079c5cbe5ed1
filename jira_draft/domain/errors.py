class JiraDraftError(RuntimeError):
    """jira-draft 실행 중 발생하는 모든 오류의 기반 클래스"""


class ConfigError(JiraDraftError):
    """설정 파일 로드/병합 실패"""


class DocumentError(JiraDraftError):
    """초안 문서 파싱 실패. 편집 루프 안에서는 재편집으로 복구 가능합니다."""


class DocumentSyntaxError(DocumentError):
    """문서 구조(YAML 섹션) 오류"""


class UnknownFieldError(DocumentError):
    """구조는 올바르지만 알 수 없는 필드가 포함된 경우"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"unknown field: {field!r}")


class AbortedUnchangedError(JiraDraftError):
    """편집기 종료 후 파일 내용이 바뀌지 않은 경우"""


class EditorFailedError(JiraDraftError):
    """외부 편집기 실행 실패 (0이 아닌 종료 코드 포함)"""

    def __init__(self, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(message)


class TerminalUnavailableError(JiraDraftError):
    """비밀번호 입력에 사용할 터미널을 열 수 없는 경우"""


class RequestFailedError(JiraDraftError):
    """Jira 요청 실패 (HTTP 오류 또는 전송 오류)"""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class AuthenticationFailedError(RequestFailedError):
    """인증 재시도 후에도 Jira가 요청을 거부한 경우"""


class ResponseDecodeError(JiraDraftError):
    """성공 응답 본문을 해석할 수 없는 경우"""
