import argparse
import asyncio
import json
import logging
import sys
import textwrap
from logging.handlers import RotatingFileHandler
from pathlib import Path

from jira_draft.configuration.container import build_container, clear_container
from jira_draft.configuration.settings import build_settings
from jira_draft.domain.errors import JiraDraftError, RequestFailedError

logger = logging.getLogger(__name__)

_configured = False


def setup_logging(verbose: bool = False) -> None:
    """로깅 설정: stderr와 파일 두 곳에 로그 출력"""
    global _configured
    if _configured:
        return

    # 로그 디렉토리 생성
    log_dir = Path.home() / ".jira-draft" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    # 로그 파일 경로
    log_file = log_dir / "jira-draft.log"

    # 로그 포맷
    formatter = logging.Formatter(
        '%(asctime)s [%(name)s] %(levelname)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # 루트 로거 설정
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    # 1. stderr 핸들러 (편집기 화면을 어지럽히지 않도록 기본은 WARNING 이상)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)

    # 2. 파일 핸들러 (로그 파일에 저장, 최대 10MB, 5개 백업)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    _configured = True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jira-draft",
        description="편집기로 Jira 이슈를 작성하여 생성합니다.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            설정 파일 우선순위 (높은 순):
              명령행 옵션 > 현재/조상 디렉토리의 .jira-draft.yml > /etc/jira-draft.yml

            예시:
              jira-draft -p PROJ -s "로그인 실패" --priority Critical
              jira-draft --noedit --dryrun -s "제목만 확인"
        """),
    )
    parser.add_argument("-e", "--endpoint", help="Jira 기본 URL (예: https://jira.example.com)")
    parser.add_argument("-u", "--user", help="Jira 사용자명")
    parser.add_argument("-p", "--project")
    parser.add_argument("-c", "--component")
    parser.add_argument("-t", "--issuetype")
    parser.add_argument("-a", "--assignee")
    parser.add_argument("-r", "--reporter")
    parser.add_argument("--priority")
    parser.add_argument("-s", "--summary")
    parser.add_argument("-d", "--description")
    parser.add_argument("--editor", help="편집기 명령 (기본값: $JIRA_EDITOR, $EDITOR, vim)")
    parser.add_argument("--template", help="초안 문서용 Jinja2 템플릿 파일")
    # None = 설정 파일 값 유지
    parser.add_argument("--noedit", action="store_true", default=None,
                        help="편집기를 열지 않고 초안을 그대로 사용")
    parser.add_argument("-n", "--dryrun", action="store_true", default=None,
                        help="전송하지 않고 요청 본문만 출력")
    parser.add_argument("-v", "--verbose", action="store_true", help="stderr에 INFO 로그 출력")
    return parser


async def run(options: dict) -> int:
    settings = build_settings(options)
    container = build_container(settings)
    logger.info("설정 파일: %s", list(settings.config_files) or "(없음)")
    logger.info("Jira URL: %s", settings.endpoint)
    logger.info("Jira User: %s", settings.user)

    try:
        ticket = await container.compose_ticket_use_case.execute(container.initial_draft)

        if settings.dryrun:
            logger.info("dry run: 요청을 전송하지 않습니다")
            print(json.dumps(ticket.to_payload(), indent=2, ensure_ascii=False))
            return 0

        result = await container.submit_ticket_use_case.execute(ticket)
        print(f"OK {result['key']} {result['url']}")
        return 0
    finally:
        clear_container()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    options = vars(args)
    verbose = options.pop("verbose")
    setup_logging(verbose)

    try:
        return asyncio.run(run(options))
    except RequestFailedError as e:
        logger.error("요청 실패: %s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        if e.status_code is not None:
            print(f"HTTP {e.status_code}", file=sys.stderr)
        if e.body:
            print(e.body, file=sys.stderr)
        return 1
    except JiraDraftError as e:
        logger.error("실패 (%s): %s", type(e).__name__, e)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.error("사용자 중단")
        print("ERROR: interrupted", file=sys.stderr)
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
