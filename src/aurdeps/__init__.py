"""
aurdeps - AUR dependency resolution core.

Parses PKGBUILD dependency arrays, classifies every dependency against the
local pacman database, the configured sync repositories and the AUR, and
fetches the AUR-only ones.
"""

__version__ = "1.0.0"


def __getattr__(name: str):
    """Lazy import for heavy dependencies."""
    if name == "DependencyResolver":
        from aurdeps.core.resolver import DependencyResolver

        return DependencyResolver
    if name == "resolve_dependencies":
        from aurdeps.core.resolver import resolve_dependencies

        return resolve_dependencies
    if name == "AURPackage":
        from aurdeps.models.package import AURPackage

        return AURPackage
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["DependencyResolver", "resolve_dependencies", "AURPackage", "__version__"]
