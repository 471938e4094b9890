"""Configuration options for replacing."""

from __future__ import annotations

from dataclasses import dataclass, field

from rgsweep.constants import DEFAULT_BACKUP_FILES, DEFAULT_BACKUP_SUFFIX, SubstitutionPlatform
from rgsweep.options.base import CloneFrozenMixin


@dataclass(frozen=True)
class ReplaceOptions(CloneFrozenMixin):
    """Backup and substitution settings for bulk replace.

    Parameters
    ----------
    backup_files : bool, default True
        Copy every target file to ``<path>.<backup_suffix>`` before rewriting it.
    backup_suffix : str, default "bak"
        Suffix of backup copies, without the leading dot.
    platform : {"gnu", "bsd", "windows"} or None
        Substitution command family. Detected from the host OS when None.

    """

    backup_files: bool = field(
        default=DEFAULT_BACKUP_FILES,
        metadata={"help": "Back up files before replacing", "importance": "core"},
    )
    backup_suffix: str = field(
        default=DEFAULT_BACKUP_SUFFIX,
        metadata={"help": "Suffix appended to backup copies", "importance": "advanced"},
    )
    platform: SubstitutionPlatform | None = field(
        default=None,
        metadata={
            "help": "Substitution command family (auto-detected when unset)",
            "choices": ["gnu", "bsd", "windows"],
            "importance": "advanced",
        },
    )

    def __post_init__(self) -> None:
        """Validate the backup suffix and platform.

        Raises
        ------
        ValueError
            If the suffix is empty or contains a path separator, or the
            platform is unknown.

        """
        suffix = self.backup_suffix.lstrip(".")
        if not suffix or "/" in suffix or "\\" in suffix:
            raise ValueError(f"Invalid backup_suffix: {self.backup_suffix!r}")
        if suffix != self.backup_suffix:
            object.__setattr__(self, "backup_suffix", suffix)
        if self.platform not in (None, "gnu", "bsd", "windows"):
            raise ValueError(f"Unknown substitution platform: {self.platform}")
