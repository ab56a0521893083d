"""
RouletteBot - Logger
====================

Tree-style logging to console and log files.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from src.core.config import LOGS_DIR


TIMEZONE = ZoneInfo("UTC")

# ANSI colors
RESET = "\033[0m"
BOLD = "\033[1m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
CYAN = "\033[96m"
GRAY = "\033[90m"


class Logger:
    """Tree-style logger with colors."""

    def __init__(self):
        self.log_file = LOGS_DIR / "bot.log"
        self.error_file = LOGS_DIR / "bot_error.log"

    def _timestamp(self) -> str:
        """Get formatted timestamp."""
        now = datetime.now(TIMEZONE)
        return now.strftime("%Y-%m-%d %H:%M:%S %Z")

    def _write_file(self, message: str, error: bool = False) -> None:
        """Write to log file."""
        try:
            with open(self.error_file if error else self.log_file, "a", encoding="utf-8") as f:
                f.write(message + "\n")
        except OSError:
            pass

    def _format_tree(self, items: List[Tuple[str, str]]) -> str:
        """Format items as a tree."""
        if not items:
            return ""
        lines = []
        for i, (key, value) in enumerate(items):
            prefix = "└─" if i == len(items) - 1 else "├─"
            lines.append(f"  {prefix} {key}: {value}")
        return "\n".join(lines)

    def _emit(
        self,
        title: str,
        items: Optional[List[Tuple[str, str]]],
        emoji: str,
        color: str = BOLD,
        error: bool = False,
    ) -> None:
        timestamp = self._timestamp()
        tree_str = self._format_tree(items or [])

        # Console output with colors
        console_msg = f"{GRAY}[{timestamp}]{RESET} {emoji} {color}{title}{RESET}"
        if tree_str:
            console_msg += f"\n{CYAN}{tree_str}{RESET}"
        print(console_msg)

        # File output without colors
        file_msg = f"[{timestamp}] {emoji} {title}"
        if tree_str:
            file_msg += f"\n{tree_str}"
        self._write_file(file_msg, error=error)

    def tree(self, title: str, items: List[Tuple[str, str]], emoji: str = "ℹ️") -> None:
        """Log with tree format."""
        self._emit(title, items, emoji)

    def error_tree(
        self,
        title: str,
        error: BaseException,
        items: Optional[List[Tuple[str, str]]] = None,
    ) -> None:
        """Log an exception with tree format to both log files."""
        details = list(items or [])
        details.append(("Error Type", type(error).__name__))
        details.append(("Error", str(error)[:200]))
        self._emit(title, details, "❌", color=RED, error=True)

    def info(self, message: str, items: Optional[List[Tuple[str, str]]] = None) -> None:
        """Log info message."""
        self._emit(message, items, "ℹ️", color=BLUE)

    def success(self, message: str, items: Optional[List[Tuple[str, str]]] = None) -> None:
        """Log success message."""
        self._emit(message, items, "✅", color=GREEN)

    def warning(self, message: str, items: Optional[List[Tuple[str, str]]] = None) -> None:
        """Log warning message."""
        self._emit(message, items, "⚠️", color=YELLOW, error=True)

    def error(self, message: str, items: Optional[List[Tuple[str, str]]] = None) -> None:
        """Log error message."""
        self._emit(message, items, "❌", color=RED, error=True)

    def debug(self, message: str, items: Optional[List[Tuple[str, str]]] = None) -> None:
        """Log debug message (file only)."""
        tree_str = self._format_tree(items or [])
        file_msg = f"[{self._timestamp()}] 🔍 {message}"
        if tree_str:
            file_msg += f"\n{tree_str}"
        self._write_file(file_msg)


logger = Logger()
