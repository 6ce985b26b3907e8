"""Identity resolution for display purposes.

The engine compares identity keys for equality only; names are needed
solely when rendering status views.
"""

from typing import Mapping, Optional, Protocol


class IdentityResolver(Protocol):
    def display_name(self, identity: str) -> str:
        ...


class MappingIdentityResolver:
    """Resolves names from a static mapping, falling back to the key itself."""

    def __init__(self, names: Optional[Mapping[str, str]] = None):
        self.names = dict(names or {})

    def display_name(self, identity: str) -> str:
        return self.names.get(identity, identity)
