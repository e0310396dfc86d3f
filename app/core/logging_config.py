import logging
import json
import os
from logging.handlers import TimedRotatingFileHandler

from app.core.config import LOG_DIR

# 핸들러 중복 등록 방지용 마커 (테스트/리로드 시 setup_logging이 여러 번 호출됨)
_HANDLER_MARKER = "_price_rule_json_handler"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        # 메시지가 dict면 그대로 기반으로 삼고, 아니면 기본 구조 생성
        base_message = record.msg if isinstance(record.msg, dict) else {
            "message": record.getMessage()
        }

        log = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            **base_message,
        }

        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)

        # 직렬화할 수 없는 값(datetime 등)은 문자열로 기록
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(log_dir: str = LOG_DIR, level: int = logging.INFO):
    """
    콘솔 + 일자별 파일 로테이션 JSON 로깅을 설정합니다.

    Rationale:
        여러 번 호출되어도 핸들러가 중복 추가되지 않도록 마커가 달린 핸들러가 있으면 건너뜁니다.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if any(getattr(h, _HANDLER_MARKER, False) for h in root_logger.handlers):
        return

    os.makedirs(log_dir, exist_ok=True)
    json_formatter = JsonFormatter()

    # 콘솔 핸들러
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(json_formatter)
    setattr(console_handler, _HANDLER_MARKER, True)
    root_logger.addHandler(console_handler)

    # 일자별 파일 로테이션 핸들러 (자정 기준, 7일 보관)
    file_handler = TimedRotatingFileHandler(
        filename=os.path.join(log_dir, "app.log"),
        when="midnight",
        backupCount=7,
        encoding="utf-8",
        utc=False,
    )
    file_handler.setFormatter(json_formatter)
    setattr(file_handler, _HANDLER_MARKER, True)
    root_logger.addHandler(file_handler)
