"""
Runtime configuration.

Values come from CLI options, falling back to ``AURDEPS_*`` environment
variables and then to the defaults below.
"""

import os
from dataclasses import dataclass
from pathlib import Path

AUR_URL = "https://aur.archlinux.org"
PACMAN_CONF = Path("/etc/pacman.conf")


@dataclass
class Config:
    """Options for one resolution pass."""

    download_dir: Path | None = None
    verbosity: int = 0
    quiet: bool = False
    color: bool = True
    jobs: int = 1
    pacman_conf: Path = PACMAN_CONF
    aur_url: str = AUR_URL
    timeout: float = 30.0

    @classmethod
    def from_env(cls, **overrides) -> "Config":
        """Build a config from the environment; non-None overrides win."""
        config = cls()

        download_dir = os.environ.get("AURDEPS_DOWNLOAD_DIR")
        if download_dir:
            config.download_dir = Path(download_dir)

        jobs = os.environ.get("AURDEPS_JOBS")
        if jobs:
            config.jobs = int(jobs)

        aur_url = os.environ.get("AURDEPS_AUR_URL")
        if aur_url:
            config.aur_url = aur_url.rstrip("/")

        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config

    def working_dir(self) -> Path:
        """Directory holding per-package build directories."""
        if self.download_dir is None:
            return Path.cwd()
        return Path(self.download_dir).expanduser().resolve()
