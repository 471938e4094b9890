"""Bulk replacement with backups and a read-only preview."""

from __future__ import annotations

from rgsweep.replace.backup import backup_path, create_backup, create_backups
from rgsweep.replace.engine import ReplaceEngine, ReplacePlan, ReplaceReport, plan_replace
from rgsweep.replace.preview import build_preview
from rgsweep.replace.substitution import SubstitutionCommand, build_substitution, detect_platform

__all__ = [
    "ReplaceEngine",
    "ReplacePlan",
    "ReplaceReport",
    "SubstitutionCommand",
    "backup_path",
    "build_preview",
    "build_substitution",
    "create_backup",
    "create_backups",
    "detect_platform",
    "plan_replace",
]
