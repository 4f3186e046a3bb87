"""
Pacman database readers.

Reads the installed-package database and the sync repository databases
straight from disk, using pacman.conf to find them. Nothing here writes to
pacman's state.
"""

import logging
import tarfile
from dataclasses import dataclass, field
from pathlib import Path

from aurdeps.config import PACMAN_CONF

logger = logging.getLogger(__name__)

DEFAULT_ROOT = Path("/")
DEFAULT_DBPATH = "var/lib/pacman"


@dataclass
class PacmanConf:
    """The parts of pacman.conf needed to locate the databases."""

    root_dir: Path = DEFAULT_ROOT
    db_path: Path | None = None
    repositories: list[str] = field(default_factory=list)

    @property
    def resolved_db_path(self) -> Path:
        if self.db_path is not None:
            return self.db_path
        return self.root_dir / DEFAULT_DBPATH


def parse_pacman_conf(path: Path = PACMAN_CONF) -> PacmanConf:
    """
    Parse pacman.conf.

    Every ``[section]`` other than ``[options]`` registers a sync repository,
    in file order. ``RootDir`` and ``DBPath`` are honoured. ``Include``
    directives are not followed.
    """
    conf = PacmanConf()
    section = None

    with open(path, encoding="utf-8") as f:
        for raw in f:
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue

            if line.startswith("[") and line.endswith("]"):
                section = line[1:-1].strip()
                if section != "options":
                    conf.repositories.append(section)
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if section != "options" or not value:
                continue
            if key == "RootDir":
                conf.root_dir = Path(value)
            elif key == "DBPath":
                conf.db_path = Path(value)

    logger.debug(f"[PACMAN] {path}: repositories={conf.repositories}")
    return conf


def _parse_desc(text: str) -> dict[str, list[str]]:
    """Parse a pacman ``desc`` file into ``{FIELD: [values]}``."""
    fields: dict[str, list[str]] = {}
    current = None
    for line in text.splitlines():
        line = line.strip()
        if not line:
            current = None
        elif line.startswith("%") and line.endswith("%"):
            current = line[1:-1]
            fields[current] = []
        elif current is not None:
            fields[current].append(line)
    return fields


def _name_from_entry(entry: str) -> str:
    """Fallback: ``name-pkgver-pkgrel`` -> ``name``."""
    return entry.rsplit("-", 2)[0]


class LocalDB:
    """Installed packages, read from ``<DBPath>/local``."""

    def __init__(self, db_path: Path):
        self.path = Path(db_path) / "local"
        self._names: set[str] | None = None

    @property
    def names(self) -> set[str]:
        if self._names is None:
            self._names = self._load()
        return self._names

    def _load(self) -> set[str]:
        names: set[str] = set()
        if not self.path.is_dir():
            logger.warning(f"[PACMAN] Local database not found: {self.path}")
            return names

        for entry in self.path.iterdir():
            if not entry.is_dir():
                continue
            desc = entry / "desc"
            name = None
            if desc.is_file():
                values = _parse_desc(desc.read_text(encoding="utf-8", errors="replace"))
                name = next(iter(values.get("NAME", [])), None)
            names.add(name or _name_from_entry(entry.name))

        logger.debug(f"[PACMAN] Loaded {len(names)} installed packages")
        return names

    def contains(self, name: str) -> bool:
        return name in self.names


class SyncDB:
    """One sync repository, read from ``<DBPath>/sync/<name>.db``."""

    def __init__(self, name: str, db_path: Path):
        self.name = name
        self.path = Path(db_path) / "sync" / f"{name}.db"
        self._names: set[str] | None = None

    @property
    def names(self) -> set[str]:
        if self._names is None:
            self._names = self._load()
        return self._names

    def _load(self) -> set[str]:
        names: set[str] = set()
        try:
            with tarfile.open(self.path, "r:*") as tar:
                for member in tar:
                    if not member.isfile() or not member.name.endswith("/desc"):
                        continue
                    fh = tar.extractfile(member)
                    if fh is None:
                        continue
                    values = _parse_desc(fh.read().decode("utf-8", errors="replace"))
                    entry = member.name.rsplit("/", 1)[0]
                    name = next(iter(values.get("NAME", [])), None)
                    names.add(name or _name_from_entry(entry))
        except FileNotFoundError:
            logger.warning(f"[PACMAN] Sync database not found: {self.path}")
        except tarfile.TarError as e:
            logger.warning(f"[PACMAN] Could not read {self.path}: {e}")

        logger.debug(f"[PACMAN] {self.name}: {len(names)} packages")
        return names

    def contains(self, name: str) -> bool:
        return name in self.names


class SyncDBs:
    """All sync repositories, searched in registration order."""

    def __init__(self, repositories: list[SyncDB]):
        self.repositories = repositories

    @classmethod
    def from_conf(cls, conf: PacmanConf) -> "SyncDBs":
        db_path = conf.resolved_db_path
        return cls([SyncDB(name, db_path) for name in conf.repositories])

    def find(self, name: str) -> str | None:
        for repo in self.repositories:
            if repo.contains(name):
                return repo.name
        return None


def open_databases(conf_path: Path = PACMAN_CONF) -> tuple[LocalDB, SyncDBs]:
    """Read pacman.conf and return the local and sync databases it points to."""
    conf = parse_pacman_conf(conf_path)
    db_path = conf.resolved_db_path
    return LocalDB(db_path), SyncDBs.from_conf(conf)


def query_foreign(local: LocalDB, sync: SyncDBs) -> list[str]:
    """Installed packages that no sync repository provides, sorted by name."""
    return sorted(name for name in local.names if sync.find(name) is None)
