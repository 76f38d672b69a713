#!/usr/bin/env python3
"""Trail history of the piston positions

Every piston drags a trail of its last TRAIL_LENGTH positions. On each frame
the samples age by one slot and flow backwards along z by the distance the
vehicle covered, the current piston position becomes the newest sample.

The samples live in a ring buffer with a head index, reading re-indexes the
ring so that index 0 is always the newest sample. A frame neither moves the
stored samples between slots nor allocates.
"""

from typing import Optional, Sequence

import numpy as np

from protokoll import get_logger

logger = get_logger(__name__)


TRAIL_LENGTH = 100


class TrailHistory:
    """Fixed capacity ordered history of 3D points (index 0 = newest)"""

    def __init__(self, resting_position, length: int = TRAIL_LENGTH, index: int = 0):
        self.index = index
        self._length = int(length)
        self._buffer = np.empty((self._length, 3), dtype=float)
        self._buffer[:] = np.asarray(resting_position, dtype=float).reshape(1, 3)
        self._head = 0
        self.needs_update = True

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, k: int) -> np.ndarray:
        if not -self._length <= k < self._length:
            raise IndexError(f"trail sample {k:n} out of range")
        return self._storage[(self._head + k) % self._length].copy()

    @property
    def _storage(self) -> np.ndarray:
        if self._buffer is None:
            raise RuntimeError(f"{type(self).__name__:s} {self.index:n} has been released.")
        return self._buffer

    @property
    def released(self) -> bool:
        return self._buffer is None

    @property
    def head(self) -> np.ndarray:
        return self[0]

    def advance(self, new_head, flow_z: float):
        """Age all samples by one slot and write the new head.

        The sample carried from slot k-1 into slot k has its z increased by
        flow_z, the new head is stored exactly as given.
        """
        buf = self._storage
        # the slot of the oldest sample becomes the new head
        self._head = (self._head - 1) % self._length
        buf[:, 2] += flow_z
        buf[self._head, 0] = new_head[0]
        buf[self._head, 1] = new_head[1]
        buf[self._head, 2] = new_head[2]
        self.needs_update = True

    def points(self, out: Optional[np.ndarray] = None) -> np.ndarray:
        """ordered (length, 3) copy, newest first"""
        buf = self._storage
        if out is None:
            out = np.empty_like(buf)
        n = self._length - self._head
        out[:n] = buf[self._head:]
        out[n:] = buf[:self._head]
        return out

    def mark_synced(self):
        self.needs_update = False

    def release(self):
        self._buffer = None
        self.needs_update = False


def advance(trail: TrailHistory, new_head, flow_z: float):
    trail.advance(new_head, flow_z)


def build_trails(cylinders: Sequence, length: int = TRAIL_LENGTH) -> list:
    """one fresh trail per cylinder, filled with its resting position"""
    logger.debug(f"Allocating {len(cylinders):n} trails of {length:n} samples.")
    return [TrailHistory(c.resting_position, length=length, index=c.index) for c in cylinders]


def release_trails(trails: Sequence[TrailHistory]):
    for trail in trails:
        trail.release()
