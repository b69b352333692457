"""
Thread-safe application logger: UI message queue, console, and 7-day rotating file logs
"""
import queue
import logging
import logging.handlers
from datetime import datetime, timedelta
from pathlib import Path

from app_config import APP_NAME, LOG_FILE
from utils_paths import get_log_dir


class AppLogger:
    """Thread-safe logger with GUI queue and 7-day rotating file logs

    Safe to call from the focus worker thread and the frame source thread;
    the UI drains queued lines with get_messages() on its own timer.
    """

    def __init__(self, log_dir=None, echo=True):
        self.message_queue = queue.Queue()
        self.error_callback = None
        self.echo = echo

        self.log_dir = Path(log_dir) if log_dir else Path(get_log_dir())
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._setup_file_logging()
        self._cleanup_old_logs()

    def _setup_file_logging(self):
        """Set up rotating file handler for 7-day logs"""
        # Silence chatty third-party loggers
        for logger_name in ['PIL', 'PIL.PngImagePlugin', 'PIL.TiffImagePlugin']:
            third_party_logger = logging.getLogger(logger_name)
            third_party_logger.setLevel(logging.CRITICAL)
            third_party_logger.propagate = False

        # Dedicated logger for the app (not the root logger)
        self.file_logger = logging.getLogger(APP_NAME)
        self.file_logger.setLevel(logging.DEBUG)
        self.file_logger.propagate = False

        # Remove any existing handlers to avoid duplicates
        for handler in list(self.file_logger.handlers):
            self.file_logger.removeHandler(handler)
            handler.close()

        handler = logging.handlers.TimedRotatingFileHandler(
            self.log_dir / LOG_FILE,
            when='midnight',
            interval=1,
            backupCount=7,
            encoding='utf-8'
        )

        # Format: [2025-12-22 18:30:43] INFO     - Message
        formatter = logging.Formatter('[%(asctime)s] %(levelname)-8s - %(message)s',
                                      datefmt='%Y-%m-%d %H:%M:%S')
        handler.setFormatter(formatter)

        self.file_logger.addHandler(handler)
        self.file_handler = handler

    def _cleanup_old_logs(self):
        """Delete log files older than 7 days"""
        cutoff = datetime.now() - timedelta(days=7)
        for log_file in self.log_dir.glob(f'{LOG_FILE}*'):
            try:
                mtime = datetime.fromtimestamp(log_file.stat().st_mtime)
                if mtime < cutoff:
                    log_file.unlink()
            except OSError as e:
                print(f"Error cleaning up old log {log_file.name}: {e}")

    def set_level(self, level):
        """Set the file log threshold ('DEBUG', 'INFO', ...)"""
        self.file_handler.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    def set_error_callback(self, callback):
        """Set callback invoked with the message of every ERROR line"""
        self.error_callback = callback

    def log(self, message, level="INFO"):
        """Add a log message to queue AND file"""
        timestamp = datetime.now().strftime('%H:%M:%S')
        formatted_message = f"[{timestamp}] {level}: {message}"

        # Queue for GUI
        self.message_queue.put(formatted_message)

        if self.echo:
            print(formatted_message)

        log_level = getattr(logging, level, logging.INFO)
        self.file_logger.log(log_level, message)

        if level == "ERROR" and self.error_callback:
            try:
                self.error_callback(message)
            except Exception as e:
                print(f"Error in error callback: {e}")

    def info(self, message):
        self.log(message, "INFO")

    def error(self, message):
        self.log(message, "ERROR")

    def warning(self, message):
        self.log(message, "WARN")

    def debug(self, message):
        self.log(message, "DEBUG")

    def get_messages(self):
        """Get all queued messages (non-blocking)"""
        messages = []
        while True:
            try:
                messages.append(self.message_queue.get_nowait())
            except queue.Empty:
                break
        return messages

    def get_log_location(self):
        """Get the log file location for display to users"""
        return str(self.log_dir / LOG_FILE)


# Singleton pattern to ensure only one logger instance
_logger_instance = None


def get_app_logger():
    """Get or create the singleton logger instance"""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = AppLogger()
    return _logger_instance


# Global logger instance (singleton)
app_logger = get_app_logger()
