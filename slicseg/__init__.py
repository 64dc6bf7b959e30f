"""SLIC superpixel segmentation package."""
from slicseg.types import (
    Color,
    ClusterCenter,
    SlicConfig,
    SegmentationResult,
    SlicError,
    DecodeError,
    EncodeError,
    DisplayInitError,
    ConfigError,
)
from slicseg.image_buffer import ImageBuffer
from slicseg.slic import SlicSegmenter
from slicseg.connectivity import enforce_connectivity
from slicseg.pipeline import SlicPipeline, segment_image, process_image

__all__ = [
    "Color",
    "ClusterCenter",
    "SlicConfig",
    "SegmentationResult",
    "SlicError",
    "DecodeError",
    "EncodeError",
    "DisplayInitError",
    "ConfigError",
    "ImageBuffer",
    "SlicSegmenter",
    "enforce_connectivity",
    "SlicPipeline",
    "segment_image",
    "process_image",
]
