"""Clone-and-build steps for AUR packages (git + makepkg)."""
from __future__ import annotations

import logging
import os
import shutil
from typing import List

from config import Settings
from constants import Constants, RemoveMakeDeps
from common.process import CommandRunner
from prompts import InputFn, prompt_yes

logger = logging.getLogger(__name__)


class PackageBuilder:
    """Clones a package's build files and runs makepkg on them."""

    def __init__(self, runner: CommandRunner, settings: Settings, input_fn: InputFn = input):
        self._runner = runner
        self._settings = settings
        self._input = input_fn

    def _ask(self, question: str) -> bool:
        return prompt_yes(question, self._input, assume_yes=self._settings.noconfirm)

    def _remove_make_deps(self) -> bool:
        policy = self._settings.remove_make_deps
        if policy is RemoveMakeDeps.ALWAYS:
            return True
        if policy is RemoveMakeDeps.NEVER:
            return False
        return self._ask("Remove make dependencies after build?")

    def makepkg_args(self, remove_deps: bool) -> List[str]:
        """Arguments for makepkg: build, install, no confirmation."""
        args = ["makepkg", "-si", "--noconfirm"]
        if remove_deps:
            args.append("--rmdeps")
        return args

    def aur_clone_url(self, name: str) -> str:
        return f"{self._settings.aur_git_base}/{name}.git"

    def clone_command(self, name: str, from_mirror: bool) -> List[str]:
        """git command that fetches the package's build files into build_dir/name."""
        if from_mirror:
            return [
                "git", "clone", "--single-branch", "--branch", name,
                self._settings.mirror_git_url, name,
            ]
        return ["git", "clone", self.aur_clone_url(name), name]

    def build(self, name: str, from_mirror: bool) -> bool:
        """Clone, build and install one package, then remove its build directory.

        Returns:
            True when makepkg succeeded.

        Raises:
            BuildError: When git or makepkg cannot be started.
        """
        build_dir = self._settings.build_dir
        workdir = os.path.join(build_dir, name)
        origin = "mirror" if from_mirror else "aur"

        proc = self._runner.run(self.clone_command(name, from_mirror), cwd=build_dir)
        if proc.returncode != 0:
            logger.error("git clone failed for %s (%s).", name, origin)
            return False

        try:
            remove_deps = self._remove_make_deps()
            proc = self._runner.run(self.makepkg_args(remove_deps), cwd=workdir)
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

        if proc.returncode != 0:
            logger.error("Failed to install %s (build error).", name)
            return False
        logger.info("Successfully installed %s", name)
        return True


def clean_build_dirs(build_dir: str) -> List[str]:
    """Remove every subdirectory of build_dir that contains a PKGBUILD.

    Returns:
        Names of the removed directories, sorted.
    """
    removed = []
    for entry in sorted(os.listdir(build_dir)):
        path = os.path.join(build_dir, entry)
        if not os.path.isdir(path) or os.path.islink(path):
            continue
        if os.path.isfile(os.path.join(path, Constants.RECIPE_FILENAME)):
            shutil.rmtree(path)
            removed.append(entry)
            logger.info("Removed: %s", entry)
    return removed
