"""Levelled line logger writing to the standard streams."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Callable, TextIO


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


def _fraction(amount: int, unit: int) -> str:
    whole, rest = divmod(amount, unit)
    if not rest:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{rest:0{digits}d}".rstrip("0")


def _format_duration(value: timedelta | float) -> str:
    if isinstance(value, timedelta):
        ns = (value.days * 86400 + value.seconds) * 10**9 + value.microseconds * 1000
    else:
        ns = round(value * 1e9)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_fraction(ns, 1_000)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_fraction(ns, 1_000_000)}ms"
    hours, rest = divmod(ns, 3600 * 10**9)
    minutes, rest = divmod(rest, 60 * 10**9)
    seconds = _fraction(rest, 10**9) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{sign}{minutes}m{seconds}"
    return sign + seconds


@dataclass
class Logger:
    """Writes debug, info and warning lines to stderr and errors to stdout."""

    level: LogLevel = LogLevel.DEBUG
    stream: TextIO | None = None
    error_stream: TextIO | None = None
    clock: Callable[[], datetime] = datetime.now

    def _emit(self, prefix: str, text: str, *, error: bool = False) -> None:
        if error:
            target = self.error_stream or sys.stdout
        else:
            target = self.stream or sys.stderr
        stamp = self.clock().strftime("%Y/%m/%d %H:%M:%S")
        target.write(f"{prefix}\t{stamp} {text}\n")
        target.flush()

    def _print_info(self, text: str) -> None:
        self._emit("INFO", text)

    def debug_logging(self, message: str) -> None:
        if self.level == LogLevel.DEBUG:
            self._emit("DEBUG", f"MESSAGE {message}")

    def info_logging(self, method: str, remote_addr: str, url: str,
                     duration: timedelta | float) -> None:
        if self.level <= LogLevel.INFO:
            self._emit("INFO", f"[{method}] {remote_addr}, {url} {_format_duration(duration)}")

    def warn_logging(self, code: int, message: str) -> None:
        if self.level <= LogLevel.WARNING:
            self._emit("WARNING", f"CODE {code} MESSAGE {message}")

    def error_logging(self, code: int, message: str) -> None:
        self._emit("ERROR", f"CODE {code} MESSAGE {message}", error=True)


DRIP_LOGGER = Logger()