"""Togglable ``[Nog]`` diagnostic channel."""

from __future__ import annotations

import logging

console_logger = logging.getLogger("nog.console")


class ConsoleLogger:
    """Emits tagged messages on the ``nog.console`` logger while turned on."""

    def __init__(self, tag: str = "Nog", is_on: bool = False) -> None:
        self.tag = tag
        self._is_on = is_on

    @property
    def is_on(self) -> bool:
        return self._is_on

    def turn(self, on: bool) -> None:
        self._is_on = on

    def log(self, message: str) -> str:
        """Emit ``message``; returns the tagged line, or ``""`` when off."""

        if not self._is_on:
            return ""
        full_message = f"[{self.tag}] {message}"
        console_logger.info(full_message)
        return full_message
