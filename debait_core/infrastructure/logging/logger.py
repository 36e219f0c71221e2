import atexit
import json
import logging
import queue
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, List

from debait_core.config.settings import settings

LOG_FILE_NAME = "debait.log"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if settings.log_redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload["data"] = extra
        return json.dumps(payload, ensure_ascii=False, default=str)


def log_file_path() -> Path:
    return Path(settings.log_dir) / LOG_FILE_NAME


def setup_logger() -> logging.Logger:
    logger = logging.getLogger("debait_core")
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    logger.propagate = False
    formatter = JsonFormatter()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    # 文件写入放到后台线程，调用方只负责入队
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8")
    fh.setFormatter(formatter)
    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(-1)
    listener = QueueListener(log_queue, fh, respect_handler_level=True)
    listener.start()
    atexit.register(listener.stop)
    logger.addHandler(QueueHandler(log_queue))
    return logger


def read_recent_logs(limit: int = 50) -> List[Dict[str, Any]]:
    """读取日志文件末尾的若干条 JSON 记录，无法解析的行直接跳过。"""

    path = log_file_path()
    if not path.exists():
        return []
    try:
        lines = path.read_text(encoding="utf-8").strip().splitlines()
    except OSError:
        return []
    entries: List[Dict[str, Any]] = []
    for line in lines[-limit:]:
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return entries


logger = setup_logger()
