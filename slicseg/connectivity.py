"""Connectivity postpass: one label per 4-connected component, small ones absorbed."""
import logging
from typing import Tuple

import numpy as np
from skimage import measure

logger = logging.getLogger(__name__)

# Seed neighbour order: left, up, right, down
NEIGHBORS_4 = ((-1, 0), (0, -1), (1, 0), (0, 1))


def min_component_size(width: int, height: int, n_centers: int) -> int:
    """Merge threshold: a quarter of the nominal cluster area, (W * H / N) / 4."""
    return (width * height // n_centers) // 4


def enforce_connectivity(labels: np.ndarray, n_centers: int) -> Tuple[np.ndarray, int]:
    """
    Relabel so every label is a single 4-connected component.

    Components are visited in row-major order of their first pixel (the
    seed). A component no larger than the threshold takes the label of the
    last already-labelled 4-neighbour of its seed, checked left, up, right,
    down. A component whose seed has no labelled neighbour (the first one,
    always) keeps a fresh label whatever its size.

    Args:
        labels: (H, W) integer label field, no -1 entries
        n_centers: Number of SLIC centers, used for the size threshold

    Returns:
        Tuple of (new_labels, n_labels) with labels contiguous in [0, n_labels)
    """
    if n_centers <= 0:
        raise ValueError(f"n_centers must be > 0, got {n_centers}")

    labels = np.asarray(labels)
    h, w = labels.shape
    threshold = min_component_size(w, h, n_centers)

    # Background value outside the label range so every pixel is labelled
    components = measure.label(labels, background=int(labels.min()) - 1, connectivity=1)
    flat = components.ravel()
    n_components = int(flat.max())

    # Pixel indices grouped by component, row-major within each group
    order = np.argsort(flat, kind='stable')
    sizes = np.bincount(flat, minlength=n_components + 1)
    starts = np.concatenate([[0], np.cumsum(sizes)])
    seeds = order[starts[1:n_components + 1]]

    new_labels = np.full(h * w, -1, dtype=np.int64)
    next_label = 0
    merged = 0

    for comp in np.argsort(seeds, kind='stable') + 1:
        members = order[starts[comp]:starts[comp + 1]]
        sy, sx = divmod(int(members[0]), w)

        adjacent_label = -1
        for dx, dy in NEIGHBORS_4:
            nx, ny = sx + dx, sy + dy
            if 0 <= nx < w and 0 <= ny < h and new_labels[ny * w + nx] >= 0:
                adjacent_label = new_labels[ny * w + nx]

        if sizes[comp] <= threshold and adjacent_label >= 0:
            new_labels[members] = adjacent_label
            merged += 1
        else:
            new_labels[members] = next_label
            next_label += 1

    logger.info(
        f"Connectivity: {n_components} components, {merged} merged "
        f"(threshold {threshold}), {next_label} labels"
    )
    return new_labels.reshape(h, w), next_label
