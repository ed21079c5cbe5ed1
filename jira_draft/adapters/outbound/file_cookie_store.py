import logging
import os
import time
from http.cookiejar import LoadError, LWPCookieJar
from pathlib import Path

logger = logging.getLogger(__name__)

# 세션 쿠키를 영구 쿠키로 저장할 때의 유효 기간
_PERSISTENT_COOKIE_SECONDS = 365 * 24 * 60 * 60


class FileCookieStore:
    """사용자 홈 디렉토리의 파일에 Jira 세션 쿠키를 보관하는 저장소"""

    def __init__(self, path: str | Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> LWPCookieJar:
        """저장된 쿠키를 읽어 새 CookieJar로 반환합니다. 파일이 없으면 빈 jar입니다."""
        jar = LWPCookieJar(str(self._path))
        if not self._path.exists():
            logger.info("쿠키 파일 없음: %s", self._path)
            return jar
        try:
            jar.load(ignore_discard=True)
        except (LoadError, OSError) as e:
            logger.warning("쿠키 파일을 읽을 수 없어 무시합니다: %s (%s)", self._path, e)
            return LWPCookieJar(str(self._path))
        logger.info("쿠키 로드: %d개 (%s)", len(jar), self._path)
        return jar

    def save(self, jar) -> None:
        """디스크의 쿠키 위에 jar의 쿠키를 덮어써 병합하고 파일 전체를 다시 씁니다.

        만료 시각이 없는 세션 쿠키는 영구 쿠키로 바꿔 저장하므로
        다음 실행에서도 재인증 없이 사용됩니다.
        """
        merged = self.load()
        expires = int(time.time()) + _PERSISTENT_COOKIE_SECONDS
        for cookie in jar:
            if cookie.discard or cookie.expires is None:
                cookie.discard = False
                cookie.expires = expires
            merged.set_cookie(cookie)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        merged.save(ignore_discard=True)
        os.chmod(self._path, 0o600)
        logger.info("쿠키 저장: %d개 (%s)", len(merged), self._path)
