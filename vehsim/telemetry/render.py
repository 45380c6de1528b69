# Force visualization handoff between the stepping and rendering threads

import threading
from dataclasses import dataclass
from typing import Optional
import numpy as np


@dataclass(frozen=True)
class ForceSnapshot:
    """Force segments published at the end of one tick.

    segments has shape (k, 2, 3): k segments, each a start and end point
    in global coordinates. The array is read-only.
    """
    tick: int
    time: float
    segments: np.ndarray

    @property
    def num_segments(self) -> int:
        return len(self.segments)


def _frozen_copy(segments) -> np.ndarray:
    arr = np.array(segments, dtype=np.float64).reshape(-1, 2, 3)
    arr.setflags(write=False)
    return arr


class RenderSnapshotBuffer:
    """Single-producer / single-consumer snapshot channel.

    publish() copies the segments into a new immutable snapshot and swaps
    it in under the lock; read_snapshot() takes the current reference under
    the same lock and hands back a copy. A reader therefore sees either the
    previous or the new snapshot, never a mix.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot: Optional[ForceSnapshot] = None
        self._published = 0

    def publish(self, force_segments, tick: int = 0, time: float = 0.0) -> None:
        """Publish the latest force geometry (stepping thread).

        Args:
            force_segments: Array-like of shape (k, 2, 3)
            tick: Tick index the segments belong to
            time: Simulation time of the tick
        """
        snapshot = ForceSnapshot(tick=tick, time=time, segments=_frozen_copy(force_segments))
        with self._lock:
            self._snapshot = snapshot
            self._published += 1

    def read_snapshot(self) -> Optional[ForceSnapshot]:
        """Latest snapshot, or None before the first publish (rendering thread)."""
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None:
            return None
        return ForceSnapshot(
            tick=snapshot.tick,
            time=snapshot.time,
            segments=_frozen_copy(snapshot.segments),
        )

    @property
    def publish_count(self) -> int:
        with self._lock:
            return self._published
