"""Core types for the SLIC segmentation pipeline."""
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from slicseg.image_buffer import ImageBuffer


@dataclass(frozen=True)
class Color:
    """RGB triple promoted to float so sums and means never truncate."""
    r: float
    g: float
    b: float

    def __add__(self, other: "Color") -> "Color":
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __sub__(self, other: "Color") -> "Color":
        return Color(self.r - other.r, self.g - other.g, self.b - other.b)

    def norm(self) -> float:
        """Euclidean length of the triple."""
        return math.sqrt(self.r * self.r + self.g * self.g + self.b * self.b)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.r, self.g, self.b)


@dataclass
class ClusterCenter:
    """Snapshot of a SLIC cluster center. The label is its index."""
    label: int
    color: Color
    x: float
    y: float
    count: int = 0


@dataclass
class SlicConfig:
    """Configuration for a SLIC segmentation run."""
    # Target superpixel count (K)
    n_superpixels: int = 200

    # Compactness (m): higher = rounder superpixels, weaker edge adherence
    compactness: float = 15.0

    # Fixed number of refinement iterations (T)
    n_iterations: int = 10

    # Window size of the initial min-gradient nudge
    seed_window: int = 3

    def __post_init__(self):
        if self.n_superpixels <= 0:
            raise ConfigError(f"n_superpixels must be > 0, got {self.n_superpixels}")
        if not self.compactness > 0:
            raise ConfigError(f"compactness must be > 0, got {self.compactness}")
        if self.n_iterations <= 0:
            raise ConfigError(f"n_iterations must be > 0, got {self.n_iterations}")
        if self.seed_window <= 0 or self.seed_window % 2 == 0:
            raise ConfigError(f"seed_window must be a positive odd number, got {self.seed_window}")


@dataclass
class SegmentationResult:
    """Result of a full segmentation run."""
    labels: np.ndarray        # (H, W) final, connected labels
    n_labels: int
    slic_labels: np.ndarray   # (H, W) labels straight out of the SLIC loop
    centers: List[ClusterCenter]  # one per SLIC label
    image: Optional["ImageBuffer"] = None  # rendered output
    step: int = 0


class SlicError(Exception):
    """Base exception for segmentation errors."""
    pass


class DecodeError(SlicError):
    """Input image is missing, unreadable or malformed."""
    pass


class EncodeError(SlicError):
    """Output image could not be written."""
    pass


class DisplayInitError(SlicError):
    """No usable window system for the viewer."""
    pass


class ConfigError(SlicError, ValueError):
    """Invalid segmentation parameters."""
    pass
