"""Window display of a segmented buffer via matplotlib."""
import logging
from typing import Optional, Sequence

import matplotlib
import numpy as np
from matplotlib import pyplot as plt

from slicseg.image_buffer import ImageBuffer
from slicseg.types import DisplayInitError

logger = logging.getLogger(__name__)

NON_INTERACTIVE_BACKENDS = ('agg', 'cairo', 'pdf', 'pgf', 'ps', 'svg', 'template')


def to_surface(image: ImageBuffer) -> np.ndarray:
    """RGBA buffer to the (H, W, 3) uint8 RGB layout imshow expects."""
    return np.ascontiguousarray(image.data[..., :3])


class ImageViewer:
    """
    Shows an image in a window of matching size until it is closed.

    Closing the window or pressing one of the quit keys ends the loop.
    """

    def __init__(
        self,
        image: ImageBuffer,
        title: str = "slicseg",
        quit_keys: Sequence[str] = ("escape", "q"),
        dpi: int = 100
    ):
        self.image = image
        self.title = title
        self.quit_keys = tuple(quit_keys)
        self.dpi = dpi
        self.figure: Optional[plt.Figure] = None

    def _check_backend(self) -> None:
        backend = matplotlib.get_backend().lower()
        if backend in NON_INTERACTIVE_BACKENDS:
            raise DisplayInitError(f"matplotlib backend '{backend}' cannot open a window")

    def build_figure(self) -> plt.Figure:
        """Create the figure, blit the surface and hook the key handler."""
        width, height = self.image.width, self.image.height
        fig = plt.figure(figsize=(width / self.dpi, height / self.dpi), dpi=self.dpi)

        ax = fig.add_axes([0, 0, 1, 1])
        ax.imshow(to_surface(self.image), interpolation='nearest')
        ax.set_axis_off()

        manager = fig.canvas.manager
        if manager is not None:
            manager.set_window_title(self.title)

        fig.canvas.mpl_connect('key_press_event', self._on_key)
        self.figure = fig
        return fig

    def _on_key(self, event) -> None:
        if event.key in self.quit_keys:
            plt.close(self.figure)

    def show(self) -> None:
        """
        Open the window and block until it is dismissed.

        Raises:
            DisplayInitError: If no interactive backend is available or the
                window cannot be created
        """
        self._check_backend()

        try:
            self.build_figure()
        except Exception as e:
            raise DisplayInitError(f"Could not open display window: {e}") from e

        logger.info(f"Showing {self.image.width}x{self.image.height} image")
        plt.show(block=True)
