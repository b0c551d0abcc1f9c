"""
Pydantic base classes for auxctl models.

Both families accept loosely typed input (YAML and TOML are hand-edited,
environment variables are strings) and validate on assignment, so setters
cannot store a value the loader would have rejected.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

_SHARED = {
    "strict": False,
    "validate_assignment": True,
    "populate_by_name": True,
    "use_enum_values": True,
    "revalidate_instances": "never",
}


class DocumentModel(BaseModel):
    """Section of the YAML service document.

    Unknown keys are kept on the instance and written back on save, so a
    load/save cycle never drops data this version does not understand.
    """

    model_config = ConfigDict(extra="allow", **_SHARED)

    def unset(self, name: str) -> None:
        """Clear a field so the next save omits it, as if it had never been written."""
        setattr(self, name, None)
        self.model_fields_set.discard(name)


class ConfigSection(BaseModel):
    """Table of the auxctl config file; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", **_SHARED)
