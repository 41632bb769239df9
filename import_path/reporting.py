"""Diagnostics sink shared by the scanner components."""

from __future__ import annotations

import logging
from typing import Callable, Optional

logger = logging.getLogger("import_path")

MessagePrinter = Callable[[str], None]


def log_message(message: str) -> None:
    """Default sink: forward messages to the package logger."""
    logger.info("%s", message)


class Reporter:
    """Base for components that emit progress and warning messages."""

    def __init__(self, quiet: bool = False, message_printer: Optional[MessagePrinter] = None):
        self.quiet = quiet
        self.message_printer: MessagePrinter = message_printer or log_message

    def print_message(self, message: str) -> None:
        self.message_printer(message)

    def warn(self, message: str) -> None:
        if not self.quiet:
            self.print_message(f"» [WARNING] {message}")
