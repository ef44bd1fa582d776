"""
Shell command adapter — run a command and capture its combined output.

Used for the installed-version probes (``powershell.exe -Command ...``)
and for the driver install scripts.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from driver_updater.adapters.base import Adapter, ExecutionContext
from driver_updater.core.models.action import Receipt

logger = logging.getLogger(__name__)


class ShellCommandAdapter(Adapter):
    """Execute commands and capture stdout+stderr as one stream.

    Action params:
        argv (list[str]): Executable and arguments, run without a shell.
        timeout (float | None): Seconds before the command is killed.
        cwd (str): Override working directory (default: context.work_dir).
    """

    def __init__(self, executable: str = "powershell.exe"):
        # Only used for availability reporting
        self._executable = executable

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which(self._executable) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.params.get("argv")
        if not argv:
            return False, "Missing required param: 'argv'"
        if not isinstance(argv, list):
            return False, "Param 'argv' must be a list"

        cwd = context.working_dir
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        argv = [str(part) for part in context.params["argv"]]
        timeout = context.params.get("timeout")
        cwd = context.working_dir
        shown = " ".join(argv)

        logger.debug("Executing: %s (cwd=%s)", shown, cwd)

        try:
            result = subprocess.run(
                argv,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": shown, "timeout": timeout},
            )
        except FileNotFoundError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Executable not found: {e.filename or shown}",
                metadata={"command": shown},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": shown},
            )

        output = (result.stdout or "").strip()
        metadata = {"command": shown, "return_code": result.returncode}

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=output,
                metadata=metadata,
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=f"Command exited with code {result.returncode}",
            output=output,
            metadata=metadata,
        )
