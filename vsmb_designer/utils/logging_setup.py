# vsmb_designer/utils/logging_setup.py

import logging
import json
import threading
from datetime import datetime
from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CONSOLE_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)-8s] [%(name)-20.20s] %(message)s'
CONSOLE_DATE_FORMAT = '%H:%M:%S'
DEFAULT_MAX_ENTRIES = 5000
EXPORT_FORMATS = ("text", "json")


@dataclass
class LogEntry:
    """One captured record, detached from the logging machinery."""
    timestamp: datetime
    level: str
    logger_name: str
    message: str
    function: str
    line_number: int
    exc_info: Optional[str] = None

    @classmethod
    def from_record(cls, record: logging.LogRecord) -> 'LogEntry':
        return cls(
            timestamp=datetime.fromtimestamp(record.created),
            level=record.levelname,
            logger_name=record.name,
            message=record.getMessage(),
            function=record.funcName,
            line_number=record.lineno,
            exc_info=logging.Formatter().formatException(record.exc_info) if record.exc_info else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'level': self.level,
            'logger': self.logger_name,
            'message': self.message,
            'function': self.function,
            'line': self.line_number,
            'exc_info': self.exc_info,
        }

    def to_text(self) -> str:
        line = f"[{self.timestamp.strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]}] [{self.level:8}] [{self.logger_name}] {self.message}"
        return f"{line}\n{self.exc_info}" if self.exc_info else line


class MemoryLogHandler(logging.Handler):
    """
    Keeps the most recent records of a run so they can be written out as a
    text or JSON log when the run ends (`vsmb --log-export`).
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES, level: int = logging.DEBUG):
        super().__init__(level)
        self._max_entries = max_entries
        self._entries: List[LogEntry] = []
        self._lock_entries = threading.Lock()

    def emit(self, record):
        try:
            entry = LogEntry.from_record(record)
        except Exception:
            self.handleError(record)
            return
        with self._lock_entries:
            self._entries.append(entry)
            if len(self._entries) > self._max_entries:
                del self._entries[:-self._max_entries]

    def entries(self) -> List[LogEntry]:
        with self._lock_entries:
            return list(self._entries)

    def export_logs(self, filename: Union[str, Path], format_type: Optional[str] = None) -> bool:
        """
        Writes the captured entries to `filename`.

        Without `format_type`, a `.json` suffix selects JSON and anything else
        plain text. Returns False (and logs why) when the file cannot be written.
        """
        path = Path(filename)
        if format_type is None:
            format_type = "json" if path.suffix.lower() == ".json" else "text"
        if format_type not in EXPORT_FORMATS:
            logger.error(f"Unknown log export format: {format_type}")
            return False

        entries = self.entries()
        try:
            with open(path, 'w', encoding='utf-8') as f:
                if format_type == "json":
                    json.dump({
                        'export_time': datetime.now().isoformat(),
                        'total_entries': len(entries),
                        'entries': [e.to_dict() for e in entries],
                    }, f, indent=2, ensure_ascii=False)
                else:
                    f.writelines(e.to_text() + "\n" for e in entries)
        except OSError as e:
            logger.error(f"Failed to export logs: {e}")
            return False
        logger.info(f"Exported {len(entries)} log entries to {path}")
        return True


def setup_global_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None,
                         memory_handler: Optional[MemoryLogHandler] = None) -> MemoryLogHandler:
    """
    Sets up the root logger: a console handler at `level`, an optional file
    handler, and a MemoryLogHandler capturing everything.
    This is the main entry point for logging setup.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    memory_handler = memory_handler or MemoryLogHandler()
    root_logger.addHandler(memory_handler)

    logging.debug("Global logging system initialized.")
    return memory_handler
