"""
The exact engine call produced for one packaging run.
"""
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class EngineInvocation:
    executable: str
    arguments: Tuple[str, ...]
    working_directory: Optional[str] = None

    def argv(self) -> list:
        return [self.executable, *self.arguments]

    def command_line(self) -> str:
        """Shell-quoted form of the call, for logs and error reports only."""
        if os.name == "nt":
            return subprocess.list2cmdline(self.argv())
        return shlex.join(self.argv())
