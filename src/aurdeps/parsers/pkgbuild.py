"""
PKGBUILD dependency array parser.

Extracts ``depends``, ``makedepends`` and ``optdepends`` arrays from a
PKGBUILD with a line scanner. This is not a bash interpreter: arrays with
nested parentheses or comments between the parentheses are not parsed
correctly.
"""

import logging
import re
from enum import Enum

from aurdeps.exceptions import ParseMalformed
from aurdeps.models.package import DependencySet, PkgbuildArrays

logger = logging.getLogger(__name__)

DEPENDS = "depends="
MAKEDEPENDS = "makedepends="
OPTDEPENDS = "optdepends="

QUOTES = "'\""
# Stripped names stop at the first version operator or quote
_STRIP_RE = re.compile(r"[=<>\"']")
# Whitespace separates elements except inside a quoted span
_TOKEN_RE = re.compile(r"""(?:'[^']*'|"[^"]*"|[^\s'"]|['"])+""")


class MatchMode(Enum):
    """Which array declarations trigger extraction."""

    DEPENDS = "depends"  # depends + makedepends, combined and stripped
    FULL = "full"  # depends / makedepends / optdepends, separate and raw


def normalize_token(token: str, strip: bool) -> str:
    """
    Normalize one array element.

    A single leading quote is always dropped. In stripped mode the token is
    cut at the first version operator or quote; otherwise only a single
    trailing quote is dropped.
    """
    if token and token[0] in QUOTES:
        token = token[1:]

    if strip:
        match = _STRIP_RE.search(token)
        if match:
            token = token[: match.start()]
    elif token and token[-1] in QUOTES:
        token = token[:-1]

    return token


def _parse_array(content: str, target: DependencySet, strip: bool) -> None:
    for token in _TOKEN_RE.findall(content):
        name = normalize_token(token, strip)
        if not name:
            continue
        if target.add(name):
            logger.debug(f"Adding depend: {name}")


def _scan(content: str, keywords: tuple[str, ...]):
    """
    Yield ``(keyword, array_content)`` for every matching declaration.

    Lines are trimmed before matching. The array runs from the first ``(``
    after the keyword to the first ``)`` after that, which may sit on a
    later line; scanning resumes after the ``)``.
    """
    pos = 0
    length = len(content)

    while pos < length:
        eol = content.find("\n", pos)
        if eol == -1:
            eol = length

        line = content[pos:eol]
        stripped = line.strip()
        keyword = next((k for k in keywords if stripped.startswith(k)), None)

        if keyword is None:
            pos = eol + 1
            continue

        line_no = content.count("\n", 0, pos) + 1
        start = pos + line.index(keyword) + len(keyword)

        opening = content.find("(", start, eol)
        if opening == -1:
            raise ParseMalformed(keyword.rstrip("="), line_no)

        closing = content.find(")", opening + 1)
        if closing == -1:
            raise ParseMalformed(keyword.rstrip("="), line_no)

        yield keyword, content[opening + 1 : closing]
        pos = closing + 1


def extract(content: str, mode: MatchMode = MatchMode.DEPENDS) -> DependencySet | PkgbuildArrays:
    """
    Extract dependency arrays from PKGBUILD text.

    Args:
        content: Raw PKGBUILD text.
        mode: ``MatchMode.DEPENDS`` returns one stripped DependencySet of
            depends and makedepends. ``MatchMode.FULL`` returns a
            PkgbuildArrays with raw depends, makedepends and optdepends.

    Raises:
        ParseMalformed: An array is opened but never closed.
    """
    if mode is MatchMode.DEPENDS:
        deps = DependencySet()
        for _keyword, array in _scan(content, (DEPENDS, MAKEDEPENDS)):
            _parse_array(array, deps, strip=True)
        return deps

    arrays = PkgbuildArrays()
    targets = {
        DEPENDS: arrays.depends,
        MAKEDEPENDS: arrays.makedepends,
        OPTDEPENDS: arrays.optdepends,
    }
    for keyword, array in _scan(content, tuple(targets)):
        _parse_array(array, targets[keyword], strip=False)
    return arrays


def get_deps(content: str) -> DependencySet:
    """Stripped depends + makedepends, as used for resolution."""
    return extract(content, MatchMode.DEPENDS)


def has_depends(content: str) -> bool:
    """Check whether any depends or makedepends array is declared."""
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith(DEPENDS) or stripped.startswith(MAKEDEPENDS):
            return True
    return False


def parse_pkgbuild(content: str) -> PkgbuildArrays:
    """
    Parse PKGBUILD content into its dependency arrays and basic metadata.

    Args:
        content: Raw PKGBUILD text content.

    Returns:
        PkgbuildArrays with raw depends, makedepends, optdepends and the
        pkgname, pkgver and pkgdesc variables.
    """
    arrays = extract(content, MatchMode.FULL)
    arrays.pkgname = _extract_var(content, "pkgname")
    arrays.pkgver = _extract_var(content, "pkgver")
    arrays.pkgdesc = _extract_var(content, "pkgdesc")
    return arrays


def _extract_var(content: str, var_name: str) -> str | None:
    """Extract a simple variable assignment like pkgname='foo'."""
    match = re.search(rf'^\s*{var_name}=["\']?([^"\'()\n]+)["\']?', content, re.MULTILINE)
    return match.group(1).strip() if match else None
