import subprocess
from typing import Any, Optional, Sequence

import structlog


class CommandRunner:
    def __init__(self, logger: Optional[Any] = None):
        self.logger = logger or structlog.get_logger(__name__)

    def run(self, argv: Sequence[str]) -> bool:
        """
        Spawn a command detached from the launcher, without waiting for it.
        Returns True once the process has been started.
        """
        if not argv:
            self.logger.error("Refusing to run an empty command.")
            return False
        try:
            subprocess.Popen(
                list(argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            self.logger.error(f"Error running command {list(argv)}: {e}")
            return False
        self.logger.info(f"Started {argv[0]}.")
        return True
