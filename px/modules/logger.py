import os
import datetime
import threading
import json

from rich.console import Console
from rich.markup import escape

from px.modules.config import config


class Logger:
    LEVELS = {
        "debug": 10,
        "info": 20,
        "success": 25,
        "warning": 30,
        "error": 40,
    }

    LOG_STYLES = {
        "DEBUG": "bright_black",
        "INFO": "blue",
        "SUCCESS": "green",
        "WARNING": "yellow",
        "ERROR": "bold red",
    }

    def __init__(self, name="px", cfg=None):
        cfg = cfg or config
        self.name = name
        self.log_file = cfg.get("logging", "log_file", fallback="")
        self.color_output = cfg.getboolean("logging", "color_output", fallback=True)
        self.log_to_file = cfg.getboolean("logging", "log_to_file", fallback=bool(self.log_file))
        self.log_to_console = cfg.getboolean("logging", "log_to_console", fallback=True)
        self.use_utc = cfg.getboolean("logging", "timestamp_utc", fallback=False)
        self.log_format = cfg.get("logging", "log_format", fallback="text").lower()
        self.max_log_size_kb = cfg.getint("logging", "max_log_size_kb", fallback=0)

        level_str = cfg.get("logging", "level", fallback="warning").lower()
        self.min_level = self.LEVELS.get(level_str, 30)

        if self.log_to_file and self.log_file:
            self._ensure_dir(self.log_file)
        else:
            self.log_to_file = False

        self.console = Console(stderr=True, no_color=not self.color_output, highlight=False)
        self._lock = threading.Lock()

    def set_level(self, level):
        self.min_level = self.LEVELS.get(level.lower(), self.min_level)

    def _ensure_dir(self, filepath):
        dirpath = os.path.dirname(filepath)
        if dirpath:
            os.makedirs(dirpath, exist_ok=True)

    def _get_timestamp(self):
        now = datetime.datetime.now(datetime.timezone.utc) if self.use_utc else datetime.datetime.now()
        return now.strftime("%Y-%m-%d %H:%M:%S")

    def _rotate_if_needed(self, filepath):
        if self.max_log_size_kb <= 0:
            return
        if os.path.exists(filepath) and os.path.getsize(filepath) > self.max_log_size_kb * 1024:
            rotated = filepath + ".1"
            if os.path.exists(rotated):
                os.remove(rotated)
            os.rename(filepath, rotated)

    def _write_file(self, filepath, message):
        if not self.log_to_file:
            return
        self._rotate_if_needed(filepath)
        with open(filepath, "a", encoding="utf-8") as f:
            f.write(message + "\n")

    def _format_text(self, level, message):
        timestamp = self._get_timestamp()
        return f"[{timestamp}] [{self.name}] [{level}] {message}"

    def _format_json(self, level, message):
        return json.dumps({
            "timestamp": self._get_timestamp(),
            "logger": self.name,
            "level": level,
            "message": message
        })

    def _format_message(self, level, message):
        if self.log_format == "json":
            return self._format_json(level, message)
        return self._format_text(level, message)

    def _log_to_console(self, formatted, level):
        if not self.log_to_console:
            return
        if self.color_output and self.log_format == "text":
            style = self.LOG_STYLES.get(level.upper(), "")
            self.console.print(escape(formatted), style=style, soft_wrap=True)
        else:
            self.console.print(formatted, markup=False, soft_wrap=True)

    def _should_log(self, level):
        return self.LEVELS.get(level.lower(), 0) >= self.min_level

    def log(self, level, message):
        level = level.upper()
        if not self._should_log(level):
            return

        formatted = self._format_message(level, message)
        with self._lock:
            self._log_to_console(formatted, level)
            self._write_file(self.log_file, formatted)

    def debug(self, message):
        self.log("DEBUG", message)

    def info(self, message):
        self.log("INFO", message)

    def success(self, message):
        self.log("SUCCESS", message)

    def warning(self, message):
        self.log("WARNING", message)

    def error(self, message):
        self.log("ERROR", message)
