"""Standard input access: bulk reads for ``@-`` values and password prompts."""

from __future__ import annotations

import getpass
import sys
from abc import ABC, abstractmethod
from typing import Optional


class InputSource(ABC):
    """Where stdin data and interactive passwords come from."""

    @property
    @abstractmethod
    def is_interactive(self) -> bool:
        """Whether a user can answer prompts."""
        ...

    @abstractmethod
    def read_all_data(self) -> bytes:
        """Read stdin to the end and return its bytes."""
        ...

    @abstractmethod
    def read_secure_line(self, prompt: str) -> Optional[str]:
        """Read one line without echo; ``None`` when the user cancels (EOF)."""
        ...


class StandardInput(InputSource):
    """The process's real stdin."""

    @property
    def is_interactive(self) -> bool:
        return hasattr(sys.stdin, "isatty") and sys.stdin.isatty()

    def read_all_data(self) -> bytes:
        return sys.stdin.buffer.read()

    def read_secure_line(self, prompt: str) -> Optional[str]:
        # The prompt is written by the caller, so getpass gets an empty one.
        try:
            return getpass.getpass(prompt="")
        except EOFError:
            return None
