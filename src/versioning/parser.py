"""PKGBUILD version parsing.

Extracts `pkgver`/`pkgrel` from recipe text without executing it. Any value
that would need shell evaluation makes the whole document unparseable.
"""

from typing import Optional, Tuple

from .models import VersionResolution

VERSION_KEY = "pkgver"
RELEASE_KEY = "pkgrel"

# Characters that mark a value as computed by the shell rather than literal
_DYNAMIC_MARKERS = ("$", "(")


def _strip_quotes(value: str) -> str:
    """Remove one pair of matching surrounding quotes, if present."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _assignment(line: str, key: str) -> Optional[str]:
    """Return the raw value when line assigns key, else None.

    The key must be followed directly by `=`; `pkgrelextra=` or `pkgver ()`
    do not count.
    """
    prefix = key + "="
    if not line.startswith(prefix):
        return None
    return line[len(prefix):].strip()


def _is_dynamic(value: str) -> bool:
    return any(marker in value for marker in _DYNAMIC_MARKERS)


def scan_version_fields(text: str) -> Tuple[Optional[str], Optional[str], bool]:
    """Scan recipe text for the first pkgver and pkgrel assignments.

    Returns:
        Tuple of (pkgver, pkgrel, dynamic). When dynamic is True the scan
        stopped at a non-literal value and the other two fields must not be
        trusted.
    """
    pkgver: Optional[str] = None
    pkgrel: Optional[str] = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        for key in (VERSION_KEY, RELEASE_KEY):
            already = pkgver if key == VERSION_KEY else pkgrel
            if already is not None:
                continue
            value = _assignment(line, key)
            if value is None:
                continue
            value = _strip_quotes(value)
            if _is_dynamic(value):
                return pkgver, pkgrel, True
            if key == VERSION_KEY:
                pkgver = value
            else:
                pkgrel = value

        if pkgver is not None and pkgrel is not None:
            break

    return pkgver, pkgrel, False


def parse_pkgbuild_version(text: str) -> VersionResolution:
    """Parse the package version out of PKGBUILD text.

    Returns FOUND("{pkgver}-{pkgrel}") when both are literal, FOUND(pkgver)
    when pkgrel is absent, NOT_FOUND without a pkgver, and UNPARSEABLE as
    soon as either value contains `$` or `(`.
    """
    pkgver, pkgrel, dynamic = scan_version_fields(text)
    if dynamic:
        return VersionResolution.unparseable()
    if pkgver is None:
        return VersionResolution.not_found()
    if pkgrel is None:
        return VersionResolution.found(pkgver)
    return VersionResolution.found(f"{pkgver}-{pkgrel}")
