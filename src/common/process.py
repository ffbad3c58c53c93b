"""Thin wrapper over subprocess so callers can inject a fake in tests."""
from __future__ import annotations

import logging
import subprocess
from typing import List, Optional

from errors import BuildError

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs external commands (git, makepkg, pacman)."""

    def run(
        self,
        cmd: List[str],
        *,
        cwd: Optional[str] = None,
        capture: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run cmd and wait for it.

        Args:
            cmd: Command tokens.
            cwd: Working directory for the child.
            capture: Capture stdout/stderr as text instead of inheriting them.

        Returns:
            The completed process; a non-zero return code is not an error here.

        Raises:
            BuildError: When the executable cannot be started.
        """
        logger.debug("Running: %s", " ".join(cmd))
        try:
            return subprocess.run(  # noqa: S603
                cmd,
                cwd=cwd,
                capture_output=capture,
                text=capture,
                check=False,
            )
        except OSError as exc:  # includes FileNotFoundError
            raise BuildError(f"failed to run '{cmd[0]}': {exc}") from exc
