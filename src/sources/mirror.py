"""GitHub AUR mirror source: one branch per package, PKGBUILD at the branch root."""
from __future__ import annotations

import logging
import urllib.parse
from typing import List, Optional

from constants import Constants, SourceKind
from common.http_client import HttpClient
from common.logging_utils import extra_context, is_debug_enabled
from common.process import CommandRunner
from errors import SourceUnavailableError
from versioning.models import VersionResolution
from versioning.parser import parse_pkgbuild_version

from .base import MetadataSource

logger = logging.getLogger(__name__)

_HEADS_PREFIX = "refs/heads/"


class MirrorRecipeSource(MetadataSource):
    """Metadata source that parses PKGBUILDs fetched from the mirror."""

    def __init__(
        self,
        http: HttpClient,
        raw_base: str = Constants.MIRROR_RAW_BASE,
        git_url: str = Constants.MIRROR_GIT_URL,
        recipe_filename: str = Constants.RECIPE_FILENAME,
    ):
        """Initialize the source.

        Args:
            http: Shared HTTP client.
            raw_base: Raw-content base URL; recipes live at {raw_base}/{name}/{recipe_filename}.
            git_url: Clone URL of the mirror repository.
            recipe_filename: Recipe file name inside each branch.
        """
        self._http = http
        self.raw_base = raw_base.rstrip("/")
        self.git_url = git_url
        self.recipe_filename = recipe_filename

    @property
    def kind(self) -> SourceKind:
        return SourceKind.MIRROR

    def recipe_url(self, package_name: str) -> str:
        """Raw URL of the package's recipe."""
        quoted = urllib.parse.quote(package_name, safe="")
        return f"{self.raw_base}/{quoted}/{self.recipe_filename}"

    def fetch_recipe(self, package_name: str) -> Optional[str]:
        """Fetch the raw recipe text.

        Returns:
            The text, or None when the mirror has no such package.

        Raises:
            SourceUnavailableError: Transport failure or an unexpected status.
        """
        response = self._http.get(self.recipe_url(package_name), context="mirror")
        if response.status_code == 404:
            return None
        if not response.ok:
            raise SourceUnavailableError(f"mirror returned HTTP {response.status_code}")
        return response.text

    def resolve_version(self, package_name: str) -> VersionResolution:
        try:
            text = self.fetch_recipe(package_name)
        except SourceUnavailableError as exc:
            return VersionResolution.source_error(str(exc))

        if text is None:
            result = VersionResolution.not_found()
        else:
            result = parse_pkgbuild_version(text)

        if is_debug_enabled(logger):
            logger.debug(
                "Resolved version",
                extra=extra_context(
                    event="resolve",
                    component="mirror",
                    action="resolve_version",
                    outcome=result.status.value,
                    target=package_name
                )
            )
        return result

    def list_packages(self, runner: CommandRunner) -> List[str]:
        """List package names (branch heads) available on the mirror.

        Raises:
            SourceUnavailableError: When git ls-remote fails.
        """
        proc = runner.run(["git", "ls-remote", "--heads", self.git_url], capture=True)
        if proc.returncode != 0:
            raise SourceUnavailableError(
                f"git ls-remote failed with status: {proc.returncode}"
            )
        names = []
        for line in (proc.stdout or "").splitlines():
            fields = line.split()
            if len(fields) < 2:
                continue
            ref = fields[1]
            names.append(ref[len(_HEADS_PREFIX):] if ref.startswith(_HEADS_PREFIX) else ref)
        return names
