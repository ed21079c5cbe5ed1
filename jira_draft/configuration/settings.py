import getpass
import logging
import os
import subprocess
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import find_dotenv, load_dotenv

from jira_draft.application.services.document_codec import DEFAULT_PRIORITIES
from jira_draft.domain.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".jira-draft.yml"
SYSTEM_CONFIG_PATH = Path("/etc/jira-draft.yml")
DEFAULT_EDITOR = "vim"


@dataclass(frozen=True)
class Settings:
    endpoint: str
    user: str
    editor: str
    cookie_file: str
    noedit: bool = False
    dryrun: bool = False
    project: str | None = None
    component: str | None = None
    issuetype: str | None = "Bug"
    assignee: str | None = None
    reporter: str | None = None
    priority: str | None = "Major"
    summary: str | None = None
    description: str | None = None
    priorities: tuple[str, ...] = DEFAULT_PRIORITIES
    template: str | None = None
    config_files: tuple[str, ...] = ()  # 실제로 병합된 설정 파일 (낮은 우선순위부터)


_SETTING_KEYS = frozenset(f.name for f in fields(Settings)) - {"config_files"}
_BOOL_KEYS = frozenset({"noedit", "dryrun"})


def _load_env() -> None:
    # 이미 설정된 환경 변수는 덮어쓰지 않음
    load_dotenv(find_dotenv(usecwd=True))


def _environment_defaults(environ: Mapping[str, str]) -> dict[str, Any]:
    user = environ.get("JIRA_USER") or getpass.getuser()
    editor = environ.get("JIRA_EDITOR") or environ.get("EDITOR") or DEFAULT_EDITOR
    home = Path(environ.get("HOME") or Path.home())
    return {
        "user": user,
        "editor": editor,
        "cookie_file": str(home / ".jira-draft" / "cookies.txt"),
    }


def find_config_files(cwd: Path, system_config: Path) -> list[Path]:
    """병합할 설정 파일 목록을 낮은 우선순위부터 반환합니다.

    /etc 설정 → 최상위 조상 디렉토리 → ... → 현재 디렉토리 순이며,
    뒤의 파일일수록 우선합니다.
    """
    candidates = [system_config]
    ancestors = [cwd, *cwd.parents]
    candidates.extend(directory / CONFIG_FILENAME for directory in reversed(ancestors))
    return [path for path in candidates if path.is_file()]


def read_config_file(path: Path) -> dict[str, Any]:
    """설정 파일 하나를 읽습니다. 실행 가능한 파일은 실행 결과(stdout)를 YAML로 파싱합니다."""
    if os.access(path, os.X_OK):
        logger.info("실행형 설정 파일 실행: %s", path)
        try:
            result = subprocess.run([str(path)], capture_output=True, text=True, cwd=path.parent)
        except OSError as e:
            raise ConfigError(f"설정 파일을 실행할 수 없습니다: {path} ({e})") from e
        if result.returncode != 0:
            raise ConfigError(
                f"설정 파일 실행 실패: {path} (exit {result.returncode}): {result.stderr.strip()[:200]}"
            )
        source = result.stdout
    else:
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"설정 파일을 읽을 수 없습니다: {path}") from e

    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise ConfigError(f"설정 파일 YAML 오류: {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"설정 파일 최상위는 매핑이어야 합니다: {path}")
    return data


def _normalize(key: str, value: Any, source: str) -> Any:
    if value is None:
        return None
    if key in _BOOL_KEYS:
        if not isinstance(value, bool):
            raise ConfigError(f"'{key}' 값은 true/false여야 합니다: {value!r} ({source})")
        return value
    if key == "priorities":
        if not isinstance(value, list) or not value:
            raise ConfigError(f"'priorities' 값은 비어 있지 않은 목록이어야 합니다 ({source})")
        return tuple(str(item) for item in value)
    if isinstance(value, (dict, list)):
        raise ConfigError(f"'{key}' 값은 단일 값이어야 합니다 ({source})")
    return str(value)


def _merge_layer(merged: dict[str, Any], layer: Mapping[str, Any], source: str) -> None:
    for key, value in layer.items():
        if key not in _SETTING_KEYS:
            logger.warning("알 수 없는 설정 키 무시: %s (%s)", key, source)
            continue
        normalized = _normalize(key, value, source)
        if normalized is not None:
            merged[key] = normalized


def build_settings(
    options: Mapping[str, Any] | None = None,
    *,
    cwd: Path | None = None,
    system_config: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    설정을 병합합니다. 우선순위(높은 순):
    명령행 옵션 > 가까운 조상 디렉토리의 .jira-draft.yml > /etc/jira-draft.yml > 환경 변수 기본값

    Args:
        options: 명령행 옵션. None 값은 "지정되지 않음"으로 취급합니다.
        cwd: 설정 파일 탐색을 시작할 디렉토리 (기본값: 현재 디렉토리)
        system_config: 시스템 설정 파일 경로 (기본값: /etc/jira-draft.yml)
        environ: 환경 변수 (기본값: os.environ)
    """
    if environ is None:
        _load_env()
        environ = os.environ
    cwd = (cwd or Path.cwd()).resolve()

    merged: dict[str, Any] = {}
    _merge_layer(merged, _environment_defaults(environ), "environment")

    config_files = find_config_files(cwd, system_config or SYSTEM_CONFIG_PATH)
    for path in config_files:
        logger.info("설정 파일 병합: %s", path)
        _merge_layer(merged, read_config_file(path), str(path))

    _merge_layer(merged, options or {}, "command line")

    if not merged.get("endpoint"):
        raise ConfigError(
            f"Jira endpoint 설정이 필요합니다: --endpoint 옵션 또는 {CONFIG_FILENAME}의 'endpoint' 키"
        )
    merged.setdefault("reporter", merged["user"])

    return Settings(config_files=tuple(str(p) for p in config_files), **merged)
