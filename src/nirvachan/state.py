"""Estado compartido: el snapshot vigente. (Shared state: the current snapshot.)"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from nirvachan.core.models import Snapshot


class SnapshotStore:
    """Referencia única al snapshot vigente.

    El poller es el único escritor y reemplaza la referencia completa; los
    lectores ven el snapshot anterior entero o el nuevo entero.

    English:
        Single reference to the current snapshot. The poller is the sole
        writer and swaps the whole reference; readers see either the whole
        previous snapshot or the whole new one.
    """

    def __init__(self, initial: Optional[Snapshot] = None) -> None:
        self._snapshot = initial or Snapshot.empty()

    @property
    def current(self) -> Snapshot:
        return self._snapshot

    def replace(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot

    def touch(self, fetched_at: Optional[datetime] = None) -> Snapshot:
        """Move only ``fetchedAt`` forward; ``votes`` is shared as-is."""
        self._snapshot = self._snapshot.touched(fetched_at)
        return self._snapshot
