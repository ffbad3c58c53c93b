"""Subcommand implementations: search, install, update, info, clean, uninstall.

Each command takes a Context carrying the injected collaborators and returns
an exit code. Network failures inside a batch are logged per package; a
failure of the single request a command depends on propagates as
SourceUnavailableError and is mapped to an exit code by the entry point.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from builder import PackageBuilder, clean_build_dirs
from common.http_client import HttpClient
from common.process import CommandRunner
from config import Settings
from constants import ExitCodes
from errors import BuildError, SourceUnavailableError
from inventory import installed_foreign_packages
from prompts import InputFn, prompt_yes
from reconcile.engine import ReconciliationEngine, is_debug_package
from sources import AurRpcSource, MirrorRecipeSource, build_sources
from versioning.models import AurPackage
from versioning.parser import parse_pkgbuild_version

logger = logging.getLogger(__name__)


@dataclass
class Context:
    """Collaborators shared by all commands for one run."""

    settings: Settings
    http: HttpClient
    runner: CommandRunner
    input_fn: InputFn = input

    def aur(self) -> AurRpcSource:
        return AurRpcSource(self.http, rpc_url=self.settings.aur_rpc_url)

    def mirror(self) -> MirrorRecipeSource:
        return MirrorRecipeSource(
            self.http,
            raw_base=self.settings.mirror_raw_base,
            git_url=self.settings.mirror_git_url,
        )

    def builder(self) -> PackageBuilder:
        return PackageBuilder(self.runner, self.settings, self.input_fn)

    def confirm(self, question: str) -> bool:
        return prompt_yes(question, self.input_fn, assume_yes=self.settings.noconfirm)


def cmd_search(ctx: Context, term: str, use_mirror: bool) -> int:
    """Print packages matching term."""
    if use_mirror:
        print(f"searching github mirror for '{term}'")
        branches = ctx.mirror().list_packages(ctx.runner)
        matches = sorted(b for b in branches if term in b)
        print(f"\nFound {len(matches)} packages (github mirror):")
        for name in matches:
            print(f"\n{name}")
        return ExitCodes.SUCCESS.value

    packages = ctx.aur().search(term)
    print(f"\nFound {len(packages)} packages:")
    for pkg in packages:
        print(f"\n{pkg.name} {pkg.version or ''}")
        if pkg.description:
            print(f"  {pkg.description}")
        print(f"  Popularity: {pkg.popularity or 0.0:.2f}")
    return ExitCodes.SUCCESS.value


def install_packages(
    ctx: Context,
    names: Sequence[str],
    use_mirror: bool,
    aur_fallback: bool = False,
) -> List[str]:
    """Build and install names one at a time.

    Args:
        ctx: Command context.
        names: Packages to install, in order.
        use_mirror: Clone build files from the GitHub mirror.
        aur_fallback: In mirror mode, build packages absent from the mirror
            from the AUR instead of skipping them.

    Returns:
        Names that were requested but not installed (skipped or failed).
    """
    not_installed: List[str] = []
    mirror_branches: Optional[set] = None
    if use_mirror:
        mirror_branches = set(ctx.mirror().list_packages(ctx.runner))

    builder = ctx.builder()
    aur = ctx.aur()
    for name in names:
        if is_debug_package(name):
            print(f"Skipping debug package install request: {name}")
            continue

        from_mirror = use_mirror
        if mirror_branches is not None and name not in mirror_branches:
            if not aur_fallback:
                logger.error("package '%s' not found on github mirror, skipping", name)
                not_installed.append(name)
                continue
            logger.warning("package '%s' not found on github mirror; building from aur", name)
            from_mirror = False

        if from_mirror:
            print(f"\nInstalling from github mirror: {name}")
        else:
            try:
                pkg = aur.fetch_info(name)
            except SourceUnavailableError as exc:
                logger.error("failed to fetch info for %s: %s", name, exc)
                not_installed.append(name)
                continue
            if pkg is None:
                logger.error("failed to fetch info for %s: Package '%s' not found", name, name)
                not_installed.append(name)
                continue
            print(f"\nInstalling: {pkg.name} {pkg.version or ''}")

        if not ctx.confirm("Proceed?"):
            print(f"Skipping {name}")
            not_installed.append(name)
            continue

        try:
            ok = builder.build(name, from_mirror=from_mirror)
        except BuildError as exc:
            logger.error("%s", exc)
            ok = False
        if not ok:
            not_installed.append(name)
    return not_installed


def cmd_install(ctx: Context, names: Sequence[str], use_mirror: bool) -> int:
    """Install the named packages."""
    failed = install_packages(ctx, names, use_mirror)
    return ExitCodes.BUILD_FAILURE.value if failed else ExitCodes.SUCCESS.value


def cmd_update(ctx: Context, use_mirror: bool) -> int:
    """Rebuild every installed foreign package whose remote version differs."""
    print("Checking for updates...")
    installed = installed_foreign_packages(ctx.runner)
    if not installed:
        print("No AUR packages installed")
        return ExitCodes.SUCCESS.value

    preferred, fallback = build_sources(use_mirror, ctx.http, ctx.settings)
    engine = ReconciliationEngine(workers=ctx.settings.workers)
    plan = engine.plan_updates(installed, preferred, fallback)

    if not plan.packages:
        print("All AUR packages are up-to-date")
        return ExitCodes.SUCCESS.value

    print(f"Updating {len(plan.packages)} package(s)...")
    failed = install_packages(ctx, plan.packages, use_mirror, aur_fallback=True)
    return ExitCodes.BUILD_FAILURE.value if failed else ExitCodes.SUCCESS.value


def _print_aur_details(pkg: AurPackage) -> None:
    print(f"\nPackage: {pkg.name}")
    print(f"Version: {pkg.version or 'Unknown'}")
    print(f"Maintainer: {pkg.maintainer or 'None'}")
    print(f"Popularity: {pkg.popularity or 0.0:.2f}")
    if pkg.description:
        print(f"\nDescription:\n  {pkg.description}")
    if pkg.depends:
        print("\nDependencies:")
        for dep in pkg.depends:
            print(f"  - {dep}")
    if pkg.make_depends:
        print("\nBuild Dependencies:")
        for dep in pkg.make_depends:
            print(f"  - {dep}")


def cmd_info(ctx: Context, name: str, use_mirror: bool) -> int:
    """Show package details, from the mirror's PKGBUILD or the RPC."""
    if use_mirror:
        mirror = ctx.mirror()
        text = mirror.fetch_recipe(name)
        if text is None:
            logger.error("package '%s' not found on github mirror", name)
            return ExitCodes.PACKAGE_NOT_FOUND.value
        result = parse_pkgbuild_version(text)
        if result.is_found:
            print(f"\nPackage: {name} (from github mirror)")
            print(f"Version (from PKGBUILD): {result.version}")
            print(f"Source: {mirror.git_url} (branch = pkg name)")
            print("Note: PKGBUILD parsing is naive; some PKGBUILDs compute version dynamically.")
            return ExitCodes.SUCCESS.value
        print("PKGBUILD found but version could not be parsed (dynamic/complex).")

    pkg = ctx.aur().fetch_info(name)
    if pkg is None:
        logger.error("Package '%s' not found", name)
        return ExitCodes.PACKAGE_NOT_FOUND.value
    _print_aur_details(pkg)
    return ExitCodes.SUCCESS.value


def cmd_clean(ctx: Context) -> int:
    """Remove build directories left in the build dir."""
    print("Cleaning build directories...")
    clean_build_dirs(ctx.settings.build_dir)
    return ExitCodes.SUCCESS.value


def cmd_uninstall(ctx: Context, names: Sequence[str]) -> int:
    """Remove packages with pacman after confirmation."""
    failures = 0
    for name in names:
        if not ctx.confirm(f"Really uninstall {name}?"):
            print(f"Skipping {name}")
            continue
        proc = ctx.runner.run(["sudo", "pacman", "-Rns", name])
        if proc.returncode == 0:
            print(f"Successfully removed {name}")
        else:
            logger.error("Failed to remove %s", name)
            failures += 1
    return ExitCodes.BUILD_FAILURE.value if failures else ExitCodes.SUCCESS.value
