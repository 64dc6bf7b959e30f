"""SLIC superpixel clustering on a combined color + spatial distance."""
import logging
import math
from typing import List, Optional

import numpy as np

from slicseg.gradient import min_gradient_neighbor
from slicseg.image_buffer import ImageBuffer
from slicseg.types import ClusterCenter, Color, SlicConfig

logger = logging.getLogger(__name__)

# Center row layout: r, g, b, x, y
COLOR_SLICE = slice(0, 3)
POS_SLICE = slice(3, 5)


def compute_step(width: int, height: int, n_superpixels: int) -> int:
    """Grid spacing S = floor(sqrt(W * H / K)), never below 1."""
    return max(1, int(math.floor(math.sqrt(width * height / n_superpixels))))


class SlicSegmenter:
    """
    SLIC clustering engine.

    Per-pixel state is kept as parallel arrays: colors (H, W, 3),
    positions (H, W, 2) as (x, y), labels (H, W) and best distances (H, W).
    Centers are an (N, 5) float array of r, g, b, x, y; the row index is
    the label.
    """

    def __init__(self, image: ImageBuffer, config: Optional[SlicConfig] = None):
        self.image = image
        self.config = config or SlicConfig()
        self.step = compute_step(image.width, image.height, self.config.n_superpixels)

        self.colors: Optional[np.ndarray] = None
        self.positions: Optional[np.ndarray] = None
        self.labels: Optional[np.ndarray] = None
        self.distances: Optional[np.ndarray] = None
        self.centers: Optional[np.ndarray] = None
        self.counts: Optional[np.ndarray] = None
        self.iterations_run = 0

    @property
    def n_centers(self) -> int:
        return 0 if self.centers is None else len(self.centers)

    def initialize(self) -> None:
        """Populate pixel samples and seat centers on the gradient-nudged grid."""
        h, w = self.image.height, self.image.width

        self.colors = self.image.rgb_array()
        ys, xs = np.mgrid[0:h, 0:w]
        self.positions = np.stack([xs, ys], axis=-1).astype(np.float64)
        self.labels = np.full((h, w), -1, dtype=np.int64)
        self.distances = np.full((h, w), np.inf, dtype=np.float64)

        rows = []
        for gy in range(0, h, self.step):
            for gx in range(0, w, self.step):
                cx, cy = min_gradient_neighbor(self.image, gx, gy, self.config.seed_window)
                color = self.image.get_color(cx, cy)
                rows.append([color.r, color.g, color.b, float(cx), float(cy)])

        self.centers = np.array(rows, dtype=np.float64)
        self.counts = np.zeros(len(self.centers), dtype=np.int64)
        self.iterations_run = 0

        logger.info(
            f"Initialized {len(self.centers)} centers on a {w}x{h} image (step {self.step})"
        )

    def distance(self, colors: np.ndarray, positions: np.ndarray, center: np.ndarray) -> np.ndarray:
        """
        Combined SLIC distance D = sqrt(dc^2 + (ds / 2)^2 * m^2).

        Args:
            colors: (..., 3) pixel colors
            positions: (..., 2) pixel positions as (x, y)
            center: One center row (r, g, b, x, y)

        Returns:
            Distances with the leading shape of the inputs
        """
        dc2 = np.sum((colors - center[COLOR_SLICE]) ** 2, axis=-1)
        ds2 = np.sum((positions - center[POS_SLICE]) ** 2, axis=-1)
        m = self.config.compactness
        return np.sqrt(dc2 + (ds2 / 4.0) * (m * m))

    def reset_distances(self) -> None:
        """Set every best distance to +inf. Labels are kept."""
        self.distances.fill(np.inf)

    def _window(self, center: np.ndarray):
        """Row/column slices of the 2S x 2S search window, clipped to the image."""
        cx, cy = center[3], center[4]
        s = self.step
        x0 = max(0, int(math.ceil(cx - s)))
        x1 = min(self.image.width - 1, int(math.floor(cx + s)))
        y0 = max(0, int(math.ceil(cy - s)))
        y1 = min(self.image.height - 1, int(math.floor(cy + s)))
        if x0 > x1 or y0 > y1:
            return None
        return slice(y0, y1 + 1), slice(x0, x1 + 1)

    def assign(self) -> None:
        """
        Assign pixels to the nearest center inside each center's window.

        Centers are visited in ascending index order and a pixel only moves
        when strictly closer, so an equidistant earlier center keeps it.
        """
        for k, center in enumerate(self.centers):
            window = self._window(center)
            if window is None:
                continue

            dist = self.distance(self.colors[window], self.positions[window], center)
            best = self.distances[window]
            labels = self.labels[window]

            closer = dist < best
            best[closer] = dist[closer]
            labels[closer] = k

    def recompute_centers(self) -> None:
        """
        Move each center to the mean color and position of its pixels.

        Sums are accumulated in float64. Centers that end up with no pixels
        keep their previous values.
        """
        n = len(self.centers)
        assigned = self.labels >= 0
        labels = self.labels[assigned]
        features = np.concatenate([self.colors, self.positions], axis=-1)[assigned]

        counts = np.bincount(labels, minlength=n)
        sums = np.stack(
            [np.bincount(labels, weights=features[:, i], minlength=n) for i in range(5)],
            axis=-1
        )

        nonempty = counts > 0
        self.centers[nonempty] = sums[nonempty] / counts[nonempty, None]
        self.counts = counts

        n_empty = int(n - nonempty.sum())
        if n_empty:
            logger.debug(f"{n_empty} empty clusters kept at their previous position")

    def iterate(self) -> None:
        """One refinement round: distance reset, assignment, recomputation."""
        self.reset_distances()
        self.assign()
        self.recompute_centers()
        self.iterations_run += 1

    def run(self) -> np.ndarray:
        """
        Initialize and run the fixed number of refinement iterations.

        Returns:
            (H, W) label array
        """
        self.initialize()

        for i in range(self.config.n_iterations):
            self.iterate()
            logger.debug(
                f"Iteration {i + 1}/{self.config.n_iterations}: "
                f"{int((self.counts > 0).sum())}/{self.n_centers} non-empty clusters"
            )

        logger.info(
            f"SLIC finished {self.iterations_run} iterations with {self.n_centers} centers"
        )
        return self.labels

    def cluster_centers(self) -> List[ClusterCenter]:
        """Current centers as ClusterCenter records."""
        centers = []
        for k, row in enumerate(self.centers):
            centers.append(ClusterCenter(
                label=k,
                color=Color(float(row[0]), float(row[1]), float(row[2])),
                x=float(row[3]),
                y=float(row[4]),
                count=int(self.counts[k])
            ))
        return centers
