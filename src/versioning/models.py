"""Data models for version resolution and update planning."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ResolutionStatus(Enum):
    """Outcome tag of a single version lookup."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    UNPARSEABLE = "unparseable"
    SOURCE_ERROR = "source_error"


class DiagnosticKind(Enum):
    """Events recorded while planning updates."""
    SKIPPED_DEBUG = "skipped_debug"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    FALLBACK = "fallback"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PackageRecord:
    """An installed package as reported by the local package database."""
    name: str
    installed_version: str


@dataclass(frozen=True)
class RemoteVersion:
    """A version a metadata source reported for a package."""
    package_name: str
    version: str


@dataclass(frozen=True)
class VersionResolution:
    """Tagged result of resolving a package name to a version.

    `version` is set only for FOUND, `reason` only for SOURCE_ERROR.
    """
    status: ResolutionStatus
    version: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def found(cls, version: str) -> "VersionResolution":
        return cls(ResolutionStatus.FOUND, version=version)

    @classmethod
    def not_found(cls) -> "VersionResolution":
        return cls(ResolutionStatus.NOT_FOUND)

    @classmethod
    def unparseable(cls) -> "VersionResolution":
        return cls(ResolutionStatus.UNPARSEABLE)

    @classmethod
    def source_error(cls, reason: str) -> "VersionResolution":
        return cls(ResolutionStatus.SOURCE_ERROR, reason=reason)

    @property
    def is_found(self) -> bool:
        return self.status is ResolutionStatus.FOUND

    def describe(self) -> str:
        """Short human-readable reason, used in diagnostics."""
        if self.status is ResolutionStatus.FOUND:
            return f"found {self.version}"
        if self.status is ResolutionStatus.NOT_FOUND:
            return "not found"
        if self.status is ResolutionStatus.UNPARSEABLE:
            return "version could not be parsed (dynamic or complex)"
        return f"error: {self.reason}"

    def to_remote_version(self, package_name: str) -> Optional[RemoteVersion]:
        """Return a RemoteVersion when this result carries one."""
        if not self.is_found or self.version is None:
            return None
        return RemoteVersion(package_name=package_name, version=self.version)


@dataclass
class AurPackage:
    """Package metadata as returned by the AUR RPC interface."""
    name: str
    version: Optional[str] = None
    description: Optional[str] = None
    popularity: Optional[float] = None
    maintainer: Optional[str] = None
    depends: List[str] = field(default_factory=list)
    make_depends: List[str] = field(default_factory=list)

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "AurPackage":
        """Build from one entry of an RPC `results` array.

        Raises:
            KeyError: When the mandatory Name field is absent.
            TypeError, ValueError: When a field has the wrong shape.
        """
        popularity = data.get("Popularity")
        return cls(
            name=str(data["Name"]),
            version=data.get("Version"),
            description=data.get("Description"),
            popularity=float(popularity) if popularity is not None else None,
            maintainer=data.get("Maintainer"),
            depends=list(data.get("Depends") or []),
            make_depends=list(data.get("MakeDepends") or []),
        )


@dataclass(frozen=True)
class Diagnostic:
    """One skip/fallback event emitted while planning."""
    package: str
    kind: DiagnosticKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class UpdatePlan:
    """Packages needing an update, in evaluation order, plus the diagnostic log."""
    packages: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
