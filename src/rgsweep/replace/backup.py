"""Backup copies written before files are rewritten.

A backup of ``path`` is a byte-identical copy at ``<path>.<suffix>``. Backups
are never restored automatically.
"""

from __future__ import annotations

import logging
import shutil
from typing import Iterable

from rgsweep.exceptions import BackupFailure

logger = logging.getLogger(__name__)


def backup_path(path: str, suffix: str) -> str:
    """Return the backup location of ``path``."""
    return f"{path}.{suffix.lstrip('.')}"


def create_backup(path: str, suffix: str) -> str:
    """Copy ``path`` to its backup location.

    Returns
    -------
    str
        Path of the backup.

    Raises
    ------
    BackupFailure
        If the file cannot be copied.

    """
    target = backup_path(path, suffix)
    try:
        shutil.copy2(path, target)
    except OSError as exc:
        raise BackupFailure(path, original_error=exc) from exc
    logger.debug("Backed up %s to %s", path, target)
    return target


def create_backups(paths: Iterable[str], suffix: str) -> tuple[list[str], list[BackupFailure]]:
    """Back up every path, collecting failures instead of stopping.

    Returns
    -------
    tuple[list[str], list[BackupFailure]]
        Backups written and failures, each in input order.

    """
    written: list[str] = []
    failures: list[BackupFailure] = []
    for path in paths:
        try:
            written.append(create_backup(path, suffix))
        except BackupFailure as failure:
            logger.warning("%s", failure.message)
            failures.append(failure)
    return written, failures
