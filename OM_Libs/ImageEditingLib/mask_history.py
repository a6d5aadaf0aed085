"""
Undo/redo history for mask edits.

MaskHistory keeps a linear sequence of owned mask snapshots and a cursor
pointing at the snapshot that matches the live mask. Pushing after an undo
discards the redo branch.
"""

import logging
from typing import List, Optional

import numpy as np

from OM_Libs.ImageEditingLib.image_models import AlphaMask

logger = logging.getLogger(__name__)


class MaskHistory:
    """
    Linear snapshot stack over AlphaMask states.

    Example:
        >>> history = MaskHistory()
        >>> history.push(mask)
        >>> apply_brush(mask, 10, 10, brush)
        >>> history.push(mask)
        >>> history.undo(mask)   # mask is back to the first snapshot
        True
    """

    def __init__(self, max_size: Optional[int] = None):
        """
        Args:
            max_size: Maximum number of snapshots kept (None = unlimited).
                      The oldest snapshots are dropped first.
        """
        if max_size is not None and max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self._snapshots: List[np.ndarray] = []
        self._cursor: int = -1

    @property
    def cursor(self) -> int:
        """Index of the active snapshot, -1 when empty."""
        return self._cursor

    def __len__(self) -> int:
        return len(self._snapshots)

    def push(self, mask: AlphaMask) -> None:
        """Record a copy of the mask, discarding any redo states."""
        del self._snapshots[self._cursor + 1:]
        self._snapshots.append(np.array(mask.values, copy=True))
        self._cursor = len(self._snapshots) - 1

        if self.max_size is not None and len(self._snapshots) > self.max_size:
            overflow = len(self._snapshots) - self.max_size
            del self._snapshots[:overflow]
            self._cursor -= overflow

        logger.debug(f"History push: {len(self._snapshots)} snapshots, cursor={self._cursor}")

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def undo(self, mask: AlphaMask) -> bool:
        """
        Step back one snapshot and copy it into the mask.

        Returns:
            True if the mask was restored, False at the oldest snapshot
        """
        if not self.can_undo():
            return False
        self._cursor -= 1
        self._restore(mask)
        return True

    def redo(self, mask: AlphaMask) -> bool:
        """
        Step forward one snapshot and copy it into the mask.

        Returns:
            True if the mask was restored, False at the newest snapshot
        """
        if not self.can_redo():
            return False
        self._cursor += 1
        self._restore(mask)
        return True

    def current(self) -> Optional[AlphaMask]:
        """Copy of the snapshot at the cursor, or None when empty."""
        if 0 <= self._cursor < len(self._snapshots):
            return AlphaMask(self._snapshots[self._cursor])
        return None

    def reset(self, mask: Optional[AlphaMask] = None) -> None:
        """Drop all snapshots and clear the mask to fully opaque."""
        self._snapshots.clear()
        self._cursor = -1
        if mask is not None:
            mask.clear()
        logger.debug("History reset")

    def _restore(self, mask: AlphaMask) -> None:
        mask.replace(self._snapshots[self._cursor])
        logger.debug(f"History restore: cursor={self._cursor}/{len(self._snapshots) - 1}")
