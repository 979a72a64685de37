from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from ..identities.model import Identity
from .resolver import DescriptorMatch


def l2_normalize(vec: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vec))
    return vec / (norm or 1.0)


class DescriptorMatcher(DescriptorMatch):
    """Local fallback: nearest stored descriptor by Euclidean distance.

    Query and stored descriptors are L2-normalised; descriptors whose length
    differs from the query are ignored.
    """

    def __init__(self, *, threshold: float):
        self._threshold = float(threshold)

    def best_match(
        self,
        descriptor: Sequence[float],
        candidates: Sequence[Identity],
    ) -> tuple[Optional[Identity], float]:
        query = l2_normalize(np.asarray(descriptor, dtype=np.float64))
        best: tuple[Optional[Identity], float] = (None, math.inf)

        for identity in candidates:
            pool = [d for d in identity.face_descriptors if len(d) == len(query)]
            if not pool:
                continue
            stored = np.asarray(pool, dtype=np.float64)
            norms = np.linalg.norm(stored, axis=1, keepdims=True)
            norms[norms == 0] = 1.0
            dist = float(np.min(np.linalg.norm(stored / norms - query, axis=1)))
            if dist < best[1]:
                best = (identity, dist)
        return best

    def is_match(self, distance: float) -> bool:
        return math.isfinite(distance) and distance < self._threshold

    def confidence(self, distance: float) -> float:
        """0..100, 100 at distance 0 and 0 at the threshold."""
        return round(max(0.0, min(1.0, 1.0 - distance / self._threshold)) * 100.0, 1)
