"""Abstract metadata source."""

from abc import ABC, abstractmethod

from constants import SourceKind
from versioning.models import VersionResolution


class MetadataSource(ABC):
    """Resolves a package name to the version a remote source advertises.

    Implementations own their transport and its timeout; resolve_version must
    always return one of the four resolution variants and never raise for a
    runtime failure.
    """

    @property
    @abstractmethod
    def kind(self) -> SourceKind:
        """Backend this source talks to."""

    @property
    def label(self) -> str:
        """Name used in diagnostics."""
        return self.kind.value

    @abstractmethod
    def resolve_version(self, package_name: str) -> VersionResolution:
        """Resolve the current remote version of package_name."""
