"""Settings for project layout and collaborators."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class Settings:
    """Project layout defaults; callers can override any field."""

    project_file: str = "project.godot"
    addons_dir: str = "addons"
    dependencies_section: str = "dependencies"
    # version recorded for addon folders registered by sync
    default_version: str = "0.0.0"
    git_executable: str = "git"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Read ``GDPM_*`` overrides from the environment."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            project_file=env.get("GDPM_PROJECT_FILE", defaults.project_file),
            addons_dir=env.get("GDPM_ADDONS_DIR", defaults.addons_dir),
            default_version=env.get("GDPM_DEFAULT_VERSION", defaults.default_version),
            git_executable=env.get("GDPM_GIT", defaults.git_executable),
        )
