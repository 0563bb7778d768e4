from typing import Dict, Hashable, List, Optional

from app.schemas.envelopes import Identity

class SessionRegistry:
    """Identities of joined connections. Handles absent from the map are anonymous."""

    def __init__(self):
        self._identities: Dict[Hashable, Identity] = {}

    def register(self, handle: Hashable, identity: Identity) -> None:
        # Overwrite replaces the whole identity; never merged field by field.
        self._identities[handle] = identity

    def lookup(self, handle: Hashable) -> Optional[Identity]:
        return self._identities.get(handle)

    def remove(self, handle: Hashable) -> Optional[Identity]:
        return self._identities.pop(handle, None)

    def snapshot(self) -> List[Identity]:
        return list(self._identities.values())

    def size(self) -> int:
        return len(self._identities)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, handle: Hashable) -> bool:
        return handle in self._identities
