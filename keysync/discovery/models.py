"""Resource groups discovered in the repository tree."""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True, slots=True)
class ResourceGroup:
    """One keyset directory that maps to one Weblate component.

    Attributes
    ----------
    name
        Component name, unique across the discovery result.
    source
        Path of the main-language file, relative to the scan root.
    file_mask
        Glob matching every per-language file in the directory.
    is_owner
        True for the single group whose component owns the VCS binding of
        its category. Every other component links to it.

    """

    name: str
    source: str
    file_mask: str
    is_owner: bool = False

    def component_name(self, suffix: str = "") -> str:
        """Return the Weblate component name, with an optional mode suffix."""
        return f"{self.name}{suffix}"
