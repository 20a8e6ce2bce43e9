"""Remote-source collaborator: fetches git-hosted dependencies."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from .errors import RemoteError

logger = logging.getLogger(__name__)


class Remote(Protocol):
    def clone(self, url: str, dst: Path) -> None: ...


class GitRemote:
    """Clones repositories with the ``git`` executable."""

    def __init__(self, executable: str = "git") -> None:
        self.executable = executable

    def clone(self, url: str, dst: Path) -> None:
        """Clone *url* into *dst*, which must not exist yet."""
        logger.info("Cloning '%s' into '%s' ...", url, dst)
        try:
            subprocess.run(
                [self.executable, "clone", "--quiet", url, str(dst)],
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise RemoteError(f"git clone failed: {e.stderr.strip()}") from e
        except FileNotFoundError as e:
            raise RemoteError(f"git executable not found: {self.executable}") from e
