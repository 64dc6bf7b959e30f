"""
SLIC segmentation pipeline.

Pipeline stages:
1. Ingest (PNG decode)
2. SLIC clustering
3. Connectivity postpass
4. Mean-color render
Then optional save to PNG and optional on-screen display.
"""
import logging
import traceback
from pathlib import Path
from typing import Optional, Union

from slicseg.connectivity import enforce_connectivity
from slicseg.image_buffer import ImageBuffer
from slicseg.render import render_boundaries, render_segmentation
from slicseg.slic import SlicSegmenter
from slicseg.types import DisplayInitError, SegmentationResult, SlicConfig
from slicseg.viewer import ImageViewer

logger = logging.getLogger(__name__)


def segment_image(image: ImageBuffer, config: Optional[SlicConfig] = None) -> SegmentationResult:
    """
    Run SLIC, the connectivity postpass and the render on an in-memory image.

    Args:
        image: Source image
        config: Segmentation parameters

    Returns:
        SegmentationResult with the rendered image attached
    """
    config = config or SlicConfig()

    segmenter = SlicSegmenter(image, config)
    slic_labels = segmenter.run()

    labels, n_labels = enforce_connectivity(slic_labels, segmenter.n_centers)
    rendered = render_segmentation(image, labels)

    return SegmentationResult(
        labels=labels,
        n_labels=n_labels,
        slic_labels=slic_labels.copy(),
        centers=segmenter.cluster_centers(),
        image=rendered,
        step=segmenter.step
    )


class SlicPipeline:
    """
    Staged SLIC segmentation of an image file.
    """

    def __init__(self, config: Optional[SlicConfig] = None, draw_boundaries: bool = False):
        self.config = config or SlicConfig()
        self.draw_boundaries = draw_boundaries
        self.debug_dir: Optional[Path] = None

        # Stage outputs
        self.source: Optional[ImageBuffer] = None
        self.segmenter: Optional[SlicSegmenter] = None
        self.result: Optional[SegmentationResult] = None

    def process(
        self,
        input_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        debug_stages: Optional[Union[str, Path]] = None,
        show: bool = False
    ) -> SegmentationResult:
        """Process an image through the pipeline."""
        input_path = Path(input_path)

        if debug_stages:
            self.debug_dir = Path(debug_stages)
            self.debug_dir.mkdir(parents=True, exist_ok=True)

        try:
            # Stage 1: Ingest
            print("Stage 1/4: Ingesting image...")
            self.source = self._stage1_ingest(input_path)
            print(f"  Loaded {self.source.width}x{self.source.height}")

            # Stage 2: SLIC
            print(f"Stage 2/4: SLIC clustering ({self.config.n_superpixels} superpixels, "
                  f"m={self.config.compactness}, {self.config.n_iterations} iterations)...")
            slic_labels = self._stage2_slic()
            print(f"  Centers: {self.segmenter.n_centers} (step {self.segmenter.step})")

            # Stage 3: Connectivity
            print("Stage 3/4: Enforcing connectivity...")
            labels, n_labels = self._stage3_connectivity(slic_labels)
            print(f"  Superpixels: {n_labels}")

            # Stage 4: Render
            print("Stage 4/4: Rendering mean colors...")
            rendered = self._stage4_render(labels)

            self.result = SegmentationResult(
                labels=labels,
                n_labels=n_labels,
                slic_labels=slic_labels.copy(),
                centers=self.segmenter.cluster_centers(),
                image=rendered,
                step=self.segmenter.step
            )

            if output_path:
                output_path = Path(output_path)
                output_path.parent.mkdir(parents=True, exist_ok=True)
                rendered.save_png(output_path)
                print(f"  Saved: {output_path}")

        except Exception as e:
            if self.debug_dir:
                error_file = self.debug_dir / "stage_error.txt"
                with open(error_file, 'w') as f:
                    f.write(f"Error: {e}\n\n")
                    f.write(traceback.format_exc())
            raise

        if show:
            self.show()

        return self.result

    def show(self) -> bool:
        """Display the rendered image. Returns False if no display is available."""
        if self.result is None:
            raise RuntimeError("Nothing to show, run process() first")

        try:
            ImageViewer(self.result.image, title=self._window_title()).show()
        except DisplayInitError as e:
            logger.warning(f"Display unavailable: {e}")
            return False
        return True

    def _window_title(self) -> str:
        return f"slicseg - {self.result.n_labels} superpixels"

    def _stage1_ingest(self, input_path: Path) -> ImageBuffer:
        """Stage 1: Decode the input image."""
        image = ImageBuffer.from_png(input_path)

        if self.debug_dir:
            image.save_png(self.debug_dir / "stage1_ingest.png")

        return image

    def _stage2_slic(self):
        """Stage 2: SLIC clustering."""
        self.segmenter = SlicSegmenter(self.source, self.config)
        labels = self.segmenter.run()

        if self.debug_dir:
            render_segmentation(self.source, labels).save_png(
                self.debug_dir / "stage2_slic.png"
            )

        return labels

    def _stage3_connectivity(self, slic_labels):
        """Stage 3: Connectivity postpass."""
        labels, n_labels = enforce_connectivity(slic_labels, self.segmenter.n_centers)

        if self.debug_dir:
            render_segmentation(self.source, labels).save_png(
                self.debug_dir / "stage3_connected.png"
            )

        return labels, n_labels

    def _stage4_render(self, labels) -> ImageBuffer:
        """Stage 4: Mean-color writeback, optionally with boundaries."""
        rendered = render_segmentation(self.source, labels)

        if self.debug_dir:
            render_boundaries(self.source, labels).save_png(
                self.debug_dir / "stage4_boundaries.png"
            )

        if self.draw_boundaries:
            rendered = render_boundaries(rendered, labels)

        return rendered


def process_image(
    input_path: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    n_superpixels: int = 200,
    compactness: float = 15.0,
    n_iterations: int = 10,
    debug_stages: Optional[Union[str, Path]] = None,
    show: bool = False
) -> SegmentationResult:
    """
    Convenience function to segment an image file.

    Args:
        input_path: Path to input PNG
        output_path: Optional path for the segmented PNG
        n_superpixels: Target superpixel count (K)
        compactness: Compactness (m)
        n_iterations: Refinement iterations (T)
        debug_stages: Optional directory for stage images
        show: Open a viewer window when done

    Returns:
        SegmentationResult
    """
    config = SlicConfig(
        n_superpixels=n_superpixels,
        compactness=compactness,
        n_iterations=n_iterations
    )

    pipeline = SlicPipeline(config)
    return pipeline.process(input_path, output_path, debug_stages, show=show)
