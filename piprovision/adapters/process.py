"""
Local process runner
"""
import subprocess
from typing import Optional, Sequence

from ..core.interfaces import CommandRunner
from ..core.logging import get_logger
from ..domain.models import CommandResult

logger = get_logger(__name__)

# shell convention for "command not found"
NOT_FOUND_EXIT_CODE = 127


class SubprocessRunner(CommandRunner):
    """CommandRunner backed by subprocess.run"""

    def run(
        self,
        argv: Sequence[str],
        stdin: Optional[str] = None,
        capture: bool = False,
    ) -> CommandResult:
        argv = tuple(argv)
        logger.debug("[exec] %s", subprocess.list2cmdline(argv))

        try:
            completed = subprocess.run(
                argv,
                input=stdin,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            logger.debug("Executable not found: %s", argv[0])
            return CommandResult(argv=argv, exit_code=NOT_FOUND_EXIT_CODE, stderr=str(e))

        return CommandResult(
            argv=argv,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
