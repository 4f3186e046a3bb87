"""
Package models: dependency sets, AUR metadata and classification results.

Defines the data shared between the PKGBUILD parser, the dependency
classifier and the resolution driver.
"""

from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass, field
from enum import Enum


class DependencySet:
    """
    Ordered collection of unique dependency names.

    Insertion order is preserved; a name that is already present is not
    added again (exact string equality).
    """

    def __init__(self, names: Iterable[str] = ()):
        self._items: list[str] = []
        self._index: set[str] = set()
        for name in names:
            self.add(name)

    def add(self, name: str) -> bool:
        """Append a name. Returns False if it was already present."""
        if name in self._index:
            return False
        self._items.append(name)
        self._index.add(name)
        return True

    def update(self, names: Iterable[str]) -> None:
        for name in names:
            self.add(name)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> str:
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DependencySet):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"DependencySet({self._items!r})"

    def to_list(self) -> list[str]:
        return list(self._items)


@dataclass
class PkgbuildArrays:
    """Dependency arrays and simple variables captured from one PKGBUILD."""

    depends: DependencySet = field(default_factory=DependencySet)
    makedepends: DependencySet = field(default_factory=DependencySet)
    optdepends: DependencySet = field(default_factory=DependencySet)
    pkgname: str | None = None
    pkgver: str | None = None
    pkgdesc: str | None = None

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dictionary."""
        return {
            "pkgname": self.pkgname,
            "pkgver": self.pkgver,
            "pkgdesc": self.pkgdesc,
            "depends": self.depends.to_list(),
            "makedepends": self.makedepends.to_list(),
            "optdepends": self.optdepends.to_list(),
        }


@dataclass
class AURPackage:
    """
    AUR metadata record as returned by the RPC interface.

    Only name, version and url_path are required to trigger a download;
    the rest is informational.
    """

    name: str
    version: str | None = None
    url_path: str | None = None  # e.g. /cgit/aur.git/snapshot/foo.tar.gz
    package_base: str | None = None
    description: str | None = None
    maintainer: str | None = None
    num_votes: int = 0
    popularity: float = 0.0
    out_of_date: int | None = None
    depends: list[str] = field(default_factory=list)
    makedepends: list[str] = field(default_factory=list)
    optdepends: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dictionary."""
        return asdict(self)

    @classmethod
    def from_rpc(cls, data: dict) -> "AURPackage":
        """Build a record from one entry of an RPC ``results`` list."""
        return cls(
            name=data["Name"],
            version=data.get("Version"),
            url_path=data.get("URLPath"),
            package_base=data.get("PackageBase"),
            description=data.get("Description"),
            maintainer=data.get("Maintainer"),
            num_votes=data.get("NumVotes") or 0,
            popularity=data.get("Popularity") or 0.0,
            out_of_date=data.get("OutOfDate"),
            depends=data.get("Depends", []),
            makedepends=data.get("MakeDepends", []),
            optdepends=data.get("OptDepends", []),
        )


class Classification(Enum):
    """Where a dependency can be satisfied from."""

    INSTALLED = "installed"
    REPOSITORY = "repository"
    AUR = "aur"
    UNRESOLVED = "unresolved"


@dataclass
class ClassifiedPackage:
    """Outcome of classifying a single dependency name."""

    name: str
    classification: Classification
    repository: str | None = None
    aur_package: AURPackage | None = None
    fetched: bool = False


@dataclass
class ResolveResult:
    """Every classified dependency of one package, in PKGBUILD order."""

    package: str
    dependencies: list[ClassifiedPackage] = field(default_factory=list)

    def _by(self, classification: Classification) -> list[ClassifiedPackage]:
        return [d for d in self.dependencies if d.classification is classification]

    @property
    def installed(self) -> list[ClassifiedPackage]:
        return self._by(Classification.INSTALLED)

    @property
    def repository(self) -> list[ClassifiedPackage]:
        return self._by(Classification.REPOSITORY)

    @property
    def aur(self) -> list[ClassifiedPackage]:
        return self._by(Classification.AUR)

    @property
    def unresolved(self) -> list[ClassifiedPackage]:
        return self._by(Classification.UNRESOLVED)

    @property
    def fetched_count(self) -> int:
        """Number of AUR dependencies whose tarball was retrieved."""
        return sum(1 for d in self.aur if d.fetched)
