# src/duewatch/notify.py

"""Alert channels: desktop notifications (best-effort) and in-app banners."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
import time
from datetime import datetime

from .tasks.task_models import NotificationContent

logger = logging.getLogger(__name__)

DEFAULT_BANNER_DISMISS_SECONDS = 6.0


def _run_quiet(*cmd: str) -> None:
    """Fire-and-forget subprocess, never waited on."""
    try:
        subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except (FileNotFoundError, OSError):
        logger.debug("Notification command failed: %s", cmd[0], exc_info=True)


def _osa_quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _ps_quote(text: str) -> str:
    return text.replace("'", "''")


class DesktopNotifier:
    """
    OS notification channel.

    "Permission" means the platform tool is present and the channel is enabled:
    notify-send on Linux, osascript on macOS, powershell on Windows.
    """

    def __init__(self, *, enabled: bool = True, platform: str | None = None) -> None:
        self._enabled = enabled
        self._platform = platform or sys.platform
        self._tool: str | None = None

    def _detect_tool(self) -> str | None:
        if self._platform == "darwin":
            return shutil.which("osascript")
        if self._platform.startswith("linux"):
            return shutil.which("notify-send")
        if self._platform == "win32":
            return shutil.which("powershell.exe") or shutil.which("powershell")
        return None

    def is_permission_granted(self) -> bool:
        return self._enabled and self._tool is not None

    def request_permission(self) -> bool:
        if not self._enabled:
            return False
        self._tool = self._detect_tool()
        if self._tool is None:
            logger.info("No desktop notification tool found for platform %s", self._platform)
        return self._tool is not None

    def send(self, content: NotificationContent) -> None:
        if self._tool is None:
            return
        if self._platform == "darwin":
            _run_quiet(
                self._tool, "-e",
                f'display notification "{_osa_quote(content.body)}" '
                f'with title "{_osa_quote(content.title)}"',
            )
        elif self._platform.startswith("linux"):
            _run_quiet(self._tool, "-a", "duewatch", content.title, content.body)
        elif self._platform == "win32":
            script = (
                "[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, "
                "ContentType = WindowsRuntime] > $null; "
                "$t = [Windows.UI.Notifications.ToastNotificationManager]::GetTemplateContent("
                "[Windows.UI.Notifications.ToastTemplateType]::ToastText02); "
                f"$t.GetElementsByTagName('text')[0].AppendChild($t.CreateTextNode('{_ps_quote(content.title)}')) > $null; "
                f"$t.GetElementsByTagName('text')[1].AppendChild($t.CreateTextNode('{_ps_quote(content.body)}')) > $null; "
                "[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier('duewatch')"
                ".Show([Windows.UI.Notifications.ToastNotification]::new($t))"
            )
            _run_quiet(self._tool, "-NoProfile", "-Command", script)


class InAppBanner:
    """
    Latest in-app banner with auto-dismiss.

    show() replaces whatever is displayed; current() returns None once the banner
    has been visible for dismiss_seconds.
    """

    def __init__(self, *, dismiss_seconds: float = DEFAULT_BANNER_DISMISS_SECONDS, clock=time.monotonic) -> None:
        self._dismiss_seconds = float(dismiss_seconds)
        self._clock = clock
        self._content: NotificationContent | None = None
        self._shown_at = 0.0

    def show(self, content: NotificationContent) -> None:
        self._content = content
        self._shown_at = self._clock()

    def current(self) -> NotificationContent | None:
        if self._content is None:
            return None
        if self._clock() - self._shown_at >= self._dismiss_seconds:
            self._content = None
        return self._content

    def dismiss(self) -> None:
        self._content = None


class ConsoleAlertSink(InAppBanner):
    """In-app banner for the CLI: also prints each alert as a timestamped line."""

    def __init__(self, stream=None, *, dismiss_seconds: float = DEFAULT_BANNER_DISMISS_SECONDS) -> None:
        super().__init__(dismiss_seconds=dismiss_seconds)
        self._stream = stream

    def show(self, content: NotificationContent) -> None:
        super().show(content)
        ts = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")
        print(f"[{ts}] [{content.title}] {content.body}", file=self._stream or sys.stdout, flush=True)
