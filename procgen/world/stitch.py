from __future__ import annotations

import logging
from typing import Mapping

import numpy as np

from procgen.world.chunk import ChunkCoord, ChunkRecord

logger = logging.getLogger(__name__)


def stitch_pair_x(left: np.ndarray, right: np.ndarray, width: int, depth: int) -> None:
    """Average left's x = width column with right's x = 0 column, in place."""
    nd = int(depth) + 1
    a = left.reshape(int(width) + 1, nd)
    b = right.reshape(int(width) + 1, nd)
    avg = (a[-1, :] + b[0, :]) * np.float32(0.5)
    a[-1, :] = avg
    b[0, :] = avg


def stitch_pair_z(near: np.ndarray, far: np.ndarray, width: int, depth: int) -> None:
    """Average near's z = depth row with far's z = 0 row, in place."""
    nd = int(depth) + 1
    a = near.reshape(int(width) + 1, nd)
    b = far.reshape(int(width) + 1, nd)
    avg = (a[:, -1] + b[:, 0]) * np.float32(0.5)
    a[:, -1] = avg
    b[:, 0] = avg


def stitch_chunks(table: Mapping[ChunkCoord, ChunkRecord], width: int, depth: int) -> int:
    """Reconcile every shared edge in ``table``; return the number of seams.

    A seam belongs to the chunk on its -X / -Z side, which only looks at its
    +X and +Z neighbours. Each edge is therefore averaged exactly once and,
    away from chunk corners, the result does not depend on the iteration
    order of ``table``. Corner nodes are touched by both passes and are not
    reconciled against the diagonal neighbour; callers that need
    reproducible corners iterate in a fixed order.
    """
    seams = 0
    for coord, rec in table.items():
        right = table.get(coord.right())
        if right is not None:
            stitch_pair_x(rec.lattice, right.lattice, width, depth)
            seams += 1

        forward = table.get(coord.forward())
        if forward is not None:
            stitch_pair_z(rec.lattice, forward.lattice, width, depth)
            seams += 1

    logger.debug("stitched %d seams across %d chunks", seams, len(table))
    return seams
