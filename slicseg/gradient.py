"""Color gradient probe used to seat initial SLIC centers off edges."""
from typing import Callable, Optional, Tuple

from slicseg.image_buffer import ImageBuffer


def gradient(image: ImageBuffer, x: int, y: int) -> float:
    """
    Central-difference color gradient magnitude at an integer pixel.

    Sum of the L2 norms of the x and y color differences, read through the
    edge-clamped sampler so border pixels need no special casing.

    Args:
        image: Source image
        x: Column
        y: Row

    Returns:
        |C(x+1, y) - C(x-1, y)| + |C(x, y+1) - C(x, y-1)|
    """
    dx = image.get_color(x + 1, y) - image.get_color(x - 1, y)
    dy = image.get_color(x, y + 1) - image.get_color(x, y - 1)
    return dx.norm() + dy.norm()


def min_gradient_neighbor(
    image: ImageBuffer,
    x: int,
    y: int,
    k: int = 3,
    gradient_fn: Optional[Callable[[ImageBuffer, int, int], float]] = None
) -> Tuple[int, int]:
    """
    Lowest-gradient position in the k x k window centered at (x, y).

    Candidates outside the image are skipped. Ties go to the first
    candidate in row-major order (top-left first).

    Args:
        image: Source image
        x: Window center column
        y: Window center row
        k: Odd window side
        gradient_fn: Gradient evaluator, defaults to gradient()

    Returns:
        (x, y) of the minimum
    """
    if k <= 0 or k % 2 == 0:
        raise ValueError(f"Window size must be a positive odd number, got {k}")

    gradient_fn = gradient_fn or gradient
    half = k // 2

    best = (x, y)
    best_value = float('inf')

    for ny in range(y - half, y + half + 1):
        if ny < 0 or ny >= image.height:
            continue
        for nx in range(x - half, x + half + 1):
            if nx < 0 or nx >= image.width:
                continue
            value = gradient_fn(image, nx, ny)
            if value < best_value:
                best_value = value
                best = (nx, ny)

    return best
