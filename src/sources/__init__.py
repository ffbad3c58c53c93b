"""Metadata sources.

Two interchangeable backends behind MetadataSource:
- aur_rpc.py: the AUR RPC interface (structured JSON)
- mirror.py: PKGBUILDs from the GitHub AUR mirror (parsed text)
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

from common.http_client import HttpClient

from .base import MetadataSource
from .aur_rpc import AurRpcSource
from .mirror import MirrorRecipeSource

if TYPE_CHECKING:
    from config import Settings


def build_sources(
    use_mirror: bool, http: HttpClient, settings: "Settings"
) -> Tuple[MetadataSource, MetadataSource]:
    """Return (preferred, fallback) for the selected mode.

    With use_mirror the mirror is authoritative and the RPC is the fallback;
    otherwise the order is reversed.
    """
    aur = AurRpcSource(http, rpc_url=settings.aur_rpc_url)
    mirror = MirrorRecipeSource(
        http,
        raw_base=settings.mirror_raw_base,
        git_url=settings.mirror_git_url,
    )
    if use_mirror:
        return mirror, aur
    return aur, mirror


__all__ = [
    "MetadataSource",
    "AurRpcSource",
    "MirrorRecipeSource",
    "build_sources",
]
