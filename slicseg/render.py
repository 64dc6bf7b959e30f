"""Writeback of segmentation results into RGBA buffers."""
from typing import Tuple

import numpy as np
from skimage.segmentation import find_boundaries

from slicseg.image_buffer import ImageBuffer


def label_mean_colors(image: ImageBuffer, labels: np.ndarray) -> np.ndarray:
    """
    Mean RGB of every label, accumulated in float64.

    Args:
        image: Source image
        labels: (H, W) non-negative labels

    Returns:
        (n_labels, 3) float array; rows of unused labels are zero
    """
    flat = labels.ravel()
    n = int(flat.max()) + 1 if flat.size else 0
    counts = np.bincount(flat, minlength=n)
    rgb = image.rgb_array().reshape(-1, 3)

    means = np.zeros((n, 3), dtype=np.float64)
    used = counts > 0
    for c in range(3):
        sums = np.bincount(flat, weights=rgb[:, c], minlength=n)
        means[used, c] = sums[used] / counts[used]
    return means


def render_segmentation(image: ImageBuffer, labels: np.ndarray) -> ImageBuffer:
    """
    Fill each superpixel with its mean color.

    Means are truncated to bytes at writeback. Alpha comes from the source.
    """
    if labels.shape != image.shape:
        raise ValueError(f"Label shape {labels.shape} does not match image {image.shape}")
    if labels.size and labels.min() < 0:
        raise ValueError("Cannot render unassigned (-1) labels")

    means = label_mean_colors(image, labels)
    out = image.copy()
    out.data[..., :3] = np.clip(means[labels], 0, 255).astype(np.uint8)
    return out


def render_boundaries(
    image: ImageBuffer,
    labels: np.ndarray,
    color: Tuple[int, int, int] = (255, 0, 0)
) -> ImageBuffer:
    """Draw superpixel boundaries over a copy of the image."""
    boundaries = find_boundaries(labels, mode='thick')
    out = image.copy()
    out.data[boundaries, :3] = color
    return out
