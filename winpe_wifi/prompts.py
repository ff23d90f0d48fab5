from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Decider(Protocol):
    """Operator decisions at the points where the workflow may stop."""

    def confirm(self, message: str) -> bool:
        ...

    def pause(self, message: str) -> None:
        ...


class ConsoleDecider:
    def confirm(self, message: str) -> bool:
        while True:
            try:
                answer = input(f"{message} [y/N] ").strip().lower()
            except EOFError:
                answer = ""
            if answer in {"y", "yes"}:
                logger.info("Operator confirmed: %s", message)
                return True
            if answer in {"", "n", "no"}:
                logger.info("Operator declined: %s", message)
                return False
            print("Please answer y or n.")

    def pause(self, message: str) -> None:
        try:
            input(f"{message} Press Enter to continue...")
        except EOFError:
            pass


class AutoDecider:
    """Answers every confirmation with a fixed value (non-interactive runs)."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.asked: list[str] = []

    def confirm(self, message: str) -> bool:
        self.asked.append(message)
        logger.info("Auto-%s: %s", "confirmed" if self.answer else "declined", message)
        return self.answer

    def pause(self, message: str) -> None:
        logger.info("Skipping pause (non-interactive): %s", message)
