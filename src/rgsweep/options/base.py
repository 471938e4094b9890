"""Base classes for rgsweep options.

Options are frozen dataclasses; a changed setting produces a new instance
through :meth:`CloneFrozenMixin.create_updated`, which keeps the value seen
by an in-flight search stable while the user edits the form.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)

    @classmethod
    def field_names(cls) -> frozenset[str]:
        """Return the names of all dataclass fields."""
        return frozenset(item.name for item in fields(cls))  # type: ignore[arg-type]

    def apply_mapping(self, values: Mapping[str, Any]) -> Self:
        """Return a copy updated with the known keys of ``values``.

        Keys that are not fields of this options class are ignored, so a
        configuration section may carry settings for other components.
        """
        known = self.field_names()
        filtered = {key: value for key, value in values.items() if key in known}
        if not filtered:
            return self
        return self.create_updated(**filtered)
