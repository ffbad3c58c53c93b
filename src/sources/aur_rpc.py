"""AUR RPC source: package info and search through the AUR web interface."""
from __future__ import annotations

import logging
import urllib.parse
from typing import Any, List, Optional

from constants import Constants, SourceKind
from common.http_client import HttpClient
from common.logging_utils import extra_context, is_debug_enabled
from errors import SourceUnavailableError
from versioning.models import AurPackage, VersionResolution

from .base import MetadataSource

logger = logging.getLogger(__name__)


class AurRpcSource(MetadataSource):
    """Metadata source backed by the AUR RPC (v5) endpoint."""

    def __init__(self, http: HttpClient, rpc_url: str = Constants.AUR_RPC_URL):
        """Initialize the source.

        Args:
            http: Shared HTTP client.
            rpc_url: RPC base URL ending in `?v=5&` (or another query separator).
        """
        self._http = http
        self._rpc_url = rpc_url

    @property
    def kind(self) -> SourceKind:
        return SourceKind.AUR

    def _query(self, query_type: str, arg: str) -> List[Any]:
        """Run one RPC query and return its `results` array.

        Raises:
            SourceUnavailableError: Transport failure, non-200 status, invalid
                JSON, an RPC-level error or a payload without `results`.
        """
        url = f"{self._rpc_url}type={query_type}&arg={urllib.parse.quote(arg, safe='')}"
        status_code, data = self._http.get_json(url, context="aur")
        if status_code != 200:
            raise SourceUnavailableError(f"aur returned HTTP {status_code}")
        if not isinstance(data, dict):
            raise SourceUnavailableError("aur returned an unexpected payload")
        if data.get("type") == "error":
            raise SourceUnavailableError(f"aur error: {data.get('error', 'unknown')}")
        results = data.get("results")
        if not isinstance(results, list):
            raise SourceUnavailableError("aur response has no results array")
        return results

    def _to_packages(self, results: List[Any]) -> List[AurPackage]:
        try:
            return [AurPackage.from_rpc(entry) for entry in results]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise SourceUnavailableError(f"aur returned a malformed package record: {exc}") from exc

    def fetch_info(self, name: str) -> Optional[AurPackage]:
        """Fetch metadata for one package.

        Returns:
            The package, or None when the AUR has no such package.

        Raises:
            SourceUnavailableError: When the RPC could not answer.
        """
        packages = self._to_packages(self._query("info", name))
        if not packages:
            return None
        return packages[0]

    def search(self, term: str) -> List[AurPackage]:
        """Search packages by name/description, most popular first.

        Raises:
            SourceUnavailableError: When the RPC could not answer.
        """
        packages = self._to_packages(self._query("search", term))
        # sorted() is stable, so equally popular packages keep RPC order
        return sorted(packages, key=lambda p: p.popularity or 0.0, reverse=True)

    def resolve_version(self, package_name: str) -> VersionResolution:
        try:
            pkg = self.fetch_info(package_name)
        except SourceUnavailableError as exc:
            return VersionResolution.source_error(str(exc))

        if pkg is None:
            result = VersionResolution.not_found()
        elif not pkg.version:
            result = VersionResolution.source_error("no version field in aur response")
        else:
            result = VersionResolution.found(pkg.version)

        if is_debug_enabled(logger):
            logger.debug(
                "Resolved version",
                extra=extra_context(
                    event="resolve",
                    component="aur_rpc",
                    action="resolve_version",
                    outcome=result.status.value,
                    target=package_name
                )
            )
        return result
