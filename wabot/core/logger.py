"""
WaBot - Logger Module
=====================

Tree-style console and file logging for the bot and the payment relay.

DESIGN:
    Every event is one headline followed by indented key/value branches,
    so a command, its sender and its group read as a single block:

        [02:30:45 PM UTC] 📦 Command Executed
          ├─ Command: warn
          ├─ Sender: 233201234567
          └─ Group: 1203630@g.us

    Files live under LOGS_DIR/<YYYY-MM-DD>/. Errors are mirrored into a
    separate file and, when WEBHOOK_URL is set, posted to that webhook.
    Day folders older than LOG_RETENTION_DAYS are pruned at startup.
"""

import os
import uuid
import asyncio
from datetime import datetime
from pathlib import Path
from typing import List, Tuple, Optional

import aiohttp
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


# =============================================================================
# Constants
# =============================================================================

LOGS_DIR = Path(os.getenv("WABOT_LOG_DIR", "logs"))
"""Root folder for the dated log folders."""

LOG_RETENTION_DAYS = 7

BRANCH = "├─"
LAST_BRANCH = "└─"

Details = List[Tuple[str, str]]


def _resolve_timezone() -> ZoneInfo:
    """BOT_TIMEZONE as a ZoneInfo, or UTC when unset or unknown."""
    name = os.getenv("BOT_TIMEZONE", "UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


LOG_TZ = _resolve_timezone()


def _now() -> datetime:
    return datetime.now(LOG_TZ)


# =============================================================================
# Tree Logger
# =============================================================================

class TreeLogger:
    """
    Writes tree-formatted events to stdout and the daily log files.

    Attributes:
        run_id: Short id stamped on the session banner and webhook posts.
        log_file: Daily file receiving every line.
        error_file: Daily file receiving error lines only.
    """

    def __init__(self, logs_dir: Path = LOGS_DIR, bot_name: str = "WaBot") -> None:
        self.run_id: str = uuid.uuid4().hex[:8]
        self._bot_name = bot_name
        self._logs_dir = logs_dir
        self._webhook_url: Optional[str] = None

        day = _now().strftime("%Y-%m-%d")
        self.log_dir = logs_dir / day
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.log_dir / f"{bot_name}-{day}.log"
        self.error_file = self.log_dir / f"{bot_name}-Errors-{day}.log"

        self._prune_day_folders()
        self._append(self.log_file, self._session_banner())

    def set_webhook(self, url: Optional[str]) -> None:
        """Post future detailed errors to ``url`` (None disables)."""
        self._webhook_url = url or None

    # =========================================================================
    # Files
    # =========================================================================

    def _prune_day_folders(self) -> None:
        """Delete YYYY-MM-DD folders past the retention window."""
        today = _now().date()
        removed = 0

        for folder in self._logs_dir.iterdir():
            if not folder.is_dir():
                continue
            try:
                day = datetime.strptime(folder.name, "%Y-%m-%d").date()
            except ValueError:
                continue
            if (today - day).days <= LOG_RETENTION_DAYS:
                continue
            for path in folder.iterdir():
                path.unlink()
            folder.rmdir()
            removed += 1

        if removed:
            print(f"[LOG CLEANUP] Pruned {removed} day folder(s) from {self._logs_dir}")

    def _session_banner(self) -> str:
        rule = "=" * 60
        started = _now().strftime("%Y-%m-%d %I:%M:%S %p %Z")
        return f"\n{rule}\n{self._bot_name} session {self.run_id} started {started}\n{rule}\n"

    @staticmethod
    def _append(path: Path, text: str) -> None:
        with open(path, "a", encoding="utf-8") as f:
            f.write(text if text.endswith("\n") else f"{text}\n")

    # =========================================================================
    # Line Output
    # =========================================================================

    def _emit(self, lines: List[str], is_error: bool = False) -> None:
        """Print ``lines`` and append them to the day's file(s)."""
        block = "\n".join(lines)
        print(block)
        self._append(self.log_file, block)
        if is_error:
            self._append(self.error_file, block)

    @staticmethod
    def _headline(text: str, emoji: str) -> str:
        stamp = _now().strftime("[%I:%M:%S %p %Z]")
        return f"{stamp} {emoji} {text}" if emoji else f"{stamp} {text}"

    @staticmethod
    def _branches(details: Optional[Details]) -> List[str]:
        if not details:
            return []
        last = len(details) - 1
        return [
            f"  {LAST_BRANCH if i == last else BRANCH} {key}: {value}"
            for i, (key, value) in enumerate(details)
        ]

    def _log(self, text: str, emoji: str, details: Optional[Details] = None, is_error: bool = False) -> None:
        self._emit([self._headline(text, emoji)] + self._branches(details), is_error=is_error)

    # =========================================================================
    # Public API
    # =========================================================================

    def tree(self, title: str, items: Details, emoji: str = "📦") -> None:
        """Log a headline with its key/value branches."""
        self._log(title, emoji, items)

    def debug(self, msg: str, details: Optional[Details] = None) -> None:
        """Only written when the DEBUG env var is set."""
        if os.getenv("DEBUG"):
            self._log(msg, "🔍", details)

    def info(self, msg: str) -> None:
        self._log(msg, "ℹ️")

    def warning(self, msg: str, details: Optional[Details] = None) -> None:
        self._log(msg, "⚠️", details)

    def error(self, msg: str, details: Optional[Details] = None) -> None:
        """
        Log to both files; detailed errors also go to the webhook.

        The webhook post is scheduled on the running loop. Outside a loop
        (startup, sync tests) it is skipped.
        """
        self._log(msg, "❌", details, is_error=True)
        if not (details and self._webhook_url):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.create_task(self._post_webhook(msg, details))

    # =========================================================================
    # Webhook
    # =========================================================================

    async def _post_webhook(self, title: str, details: Details) -> None:
        url = self._webhook_url
        if not url:
            return

        payload = {
            "title": f"❌ {title}",
            "text": "\n".join(f"{key}: {value}" for key, value in details),
            "bot": self._bot_name,
            "run_id": self.run_id,
            "timestamp": _now().isoformat(),
        }
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=10)) as session:
                async with session.post(url, json=payload) as resp:
                    if resp.status >= 400:
                        print(f"[WEBHOOK] {url} answered {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            print(f"[WEBHOOK] post failed: {e}")


# =============================================================================
# Global Instance
# =============================================================================

logger = TreeLogger()


__all__ = [
    "logger",
    "TreeLogger",
    "LOGS_DIR",
    "LOG_TZ",
]
