"""Local package inventory: foreign (AUR) packages known to pacman."""
from __future__ import annotations

import logging
from typing import List

from common.process import CommandRunner
from errors import BuildError, InventoryError
from versioning.models import PackageRecord

logger = logging.getLogger(__name__)


def parse_pacman_query(output: str) -> List[PackageRecord]:
    """Parse `pacman -Qm` output ("name version" per line).

    Lines with fewer than two fields are ignored; order is preserved.
    """
    records = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        records.append(PackageRecord(name=fields[0], installed_version=fields[1]))
    return records


def installed_foreign_packages(runner: CommandRunner) -> List[PackageRecord]:
    """Return installed packages that are not in the sync databases.

    Raises:
        InventoryError: When pacman cannot be run or exits non-zero.
    """
    try:
        proc = runner.run(["pacman", "-Qm"], capture=True)
    except BuildError as exc:
        raise InventoryError(str(exc)) from exc
    if proc.returncode != 0:
        # pacman -Qm exits 1 with no output at all when no foreign packages exist
        detail = (proc.stderr or "").strip() or (proc.stdout or "").strip()
        if detail:
            raise InventoryError(f"failed to run 'pacman -Qm': {detail}")
        return []
    records = parse_pacman_query(proc.stdout or "")
    logger.debug("Found %d foreign packages", len(records))
    return records
