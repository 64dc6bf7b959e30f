"""Tests for the SLIC clustering engine."""
import numpy as np
import pytest

from slicseg.image_buffer import ImageBuffer
from slicseg.slic import SlicSegmenter, compute_step
from slicseg.types import ConfigError, SlicConfig


def expected_distance(segmenter, label_map):
    """Recompute D for every pixel against its assigned center."""
    centers = segmenter.centers[label_map]
    dc2 = np.sum((segmenter.colors - centers[..., :3]) ** 2, axis=-1)
    ds2 = np.sum((segmenter.positions - centers[..., 3:]) ** 2, axis=-1)
    m = segmenter.config.compactness
    return np.sqrt(dc2 + (np.sqrt(ds2) / 2) ** 2 * m ** 2)


class TestStep:
    """Test grid step derivation."""

    def test_step(self):
        assert compute_step(16, 16, 4) == 8
        assert compute_step(32, 32, 2) == 22
        assert compute_step(100, 50, 200) == 5

    def test_step_floor_at_one(self):
        assert compute_step(4, 4, 1000) == 1


class TestConfig:
    """Test configuration validation."""

    @pytest.mark.parametrize("kwargs", [
        {"n_superpixels": 0},
        {"n_superpixels": -3},
        {"compactness": 0.0},
        {"compactness": -1.0},
        {"n_iterations": 0},
        {"seed_window": 2},
    ])
    def test_rejects_invalid(self, kwargs):
        with pytest.raises(ConfigError):
            SlicConfig(**kwargs)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            SlicConfig(n_iterations=-1)


class TestInitialization:
    """Test center seeding."""

    def test_grid_centers_on_flat_image(self, uniform_image):
        segmenter = SlicSegmenter(uniform_image, SlicConfig(n_superpixels=4, compactness=10))
        segmenter.initialize()

        positions = [tuple(c[3:]) for c in segmenter.centers]
        assert positions == [(0.0, 0.0), (8.0, 0.0), (0.0, 8.0), (8.0, 8.0)]
        assert np.all(segmenter.centers[:, :3] == 128.0)

    def test_pixel_state_reset(self, noise_image):
        segmenter = SlicSegmenter(noise_image, SlicConfig(n_superpixels=6))
        segmenter.initialize()

        assert segmenter.labels.shape == (20, 24)
        assert np.all(segmenter.labels == -1)
        assert np.all(np.isinf(segmenter.distances))
        assert segmenter.positions[3, 5].tolist() == [5.0, 3.0]
        np.testing.assert_array_equal(segmenter.colors, noise_image.rgb_array())

    def test_centers_avoid_edges(self, split_image):
        segmenter = SlicSegmenter(split_image, SlicConfig(n_superpixels=2))
        segmenter.initialize()

        # Grid step 22 gives 4 seeds, none sitting on the color edge
        assert segmenter.n_centers == 4
        for center in segmenter.centers:
            assert tuple(center[:3]) in [(255.0, 0.0, 0.0), (0.0, 0.0, 255.0)]


class TestIteration:
    """Test assignment and recomputation invariants."""

    def test_distance_consistency_after_assign(self, noise_image):
        segmenter = SlicSegmenter(noise_image, SlicConfig(n_superpixels=6, compactness=5))
        segmenter.initialize()
        segmenter.iterate()
        segmenter.reset_distances()
        segmenter.assign()

        assigned = segmenter.labels >= 0
        expected = expected_distance(segmenter, np.where(assigned, segmenter.labels, 0))
        np.testing.assert_allclose(segmenter.distances[assigned], expected[assigned])

    def test_centroid_law_after_recompute(self, noise_image):
        segmenter = SlicSegmenter(noise_image, SlicConfig(n_superpixels=6, compactness=5))
        segmenter.initialize()
        segmenter.iterate()
        segmenter.iterate()

        for k, center in enumerate(segmenter.centers):
            mask = segmenter.labels == k
            if not mask.any():
                continue
            np.testing.assert_allclose(center[:3], segmenter.colors[mask].mean(axis=0))
            np.testing.assert_allclose(center[3:], segmenter.positions[mask].mean(axis=0))
            assert segmenter.counts[k] == mask.sum()

    def test_labels_survive_distance_reset(self, noise_image):
        segmenter = SlicSegmenter(noise_image, SlicConfig(n_superpixels=6))
        segmenter.initialize()
        segmenter.iterate()
        before = segmenter.labels.copy()

        segmenter.reset_distances()

        np.testing.assert_array_equal(segmenter.labels, before)
        assert np.all(np.isinf(segmenter.distances))

    def test_equidistant_pixel_stays_with_earlier_center(self, uniform_image):
        """Strict less-than: a tie never moves a pixel to a later center."""
        segmenter = SlicSegmenter(uniform_image, SlicConfig(n_superpixels=4, compactness=10))
        segmenter.initialize()
        segmenter.assign()

        # (4, 0) is 4 px from both center 0 at (0, 0) and center 1 at (8, 0)
        assert segmenter.labels[0, 4] == 0
        assert segmenter.labels[0, 5] == 1

    def test_empty_cluster_keeps_previous_center(self, noise_image):
        segmenter = SlicSegmenter(noise_image, SlicConfig(n_superpixels=6))
        segmenter.initialize()
        previous = segmenter.centers.copy()

        segmenter.labels[:] = 0
        segmenter.recompute_centers()

        assert segmenter.counts[0] == noise_image.width * noise_image.height
        np.testing.assert_array_equal(segmenter.centers[1:], previous[1:])
        assert np.all(segmenter.counts[1:] == 0)


class TestRun:
    """Test full segmentation runs."""

    def test_all_pixels_labelled(self, noise_image):
        segmenter = SlicSegmenter(noise_image, SlicConfig(n_superpixels=10, n_iterations=4))
        labels = segmenter.run()

        assert segmenter.iterations_run == 4
        assert labels.min() >= 0
        assert labels.max() < segmenter.n_centers

    def test_uniform_image(self, uniform_image):
        segmenter = SlicSegmenter(
            uniform_image, SlicConfig(n_superpixels=4, compactness=10, n_iterations=5)
        )
        labels = segmenter.run()

        assert set(np.unique(labels)) <= {0, 1, 2, 3}
        for center in segmenter.cluster_centers():
            assert center.color.as_tuple() == (128.0, 128.0, 128.0)

    def test_two_color_split(self, split_image):
        segmenter = SlicSegmenter(
            split_image, SlicConfig(n_superpixels=2, compactness=10, n_iterations=10)
        )
        labels = segmenter.run()

        # Step 22 seeds four centers, two on each color
        assert segmenter.n_centers == 4
        left = set(np.unique(labels[:, :16]))
        right = set(np.unique(labels[:, 16:]))
        assert left.isdisjoint(right)
        assert len(left) == 2
        assert len(right) == 2

        for center in segmenter.cluster_centers():
            if center.count:
                assert center.color.as_tuple() in [(255.0, 0.0, 0.0), (0.0, 0.0, 255.0)]

    def test_more_superpixels_than_pixels(self):
        image = ImageBuffer.from_array(np.full((3, 3, 3), 50, dtype=np.uint8))

        segmenter = SlicSegmenter(image, SlicConfig(n_superpixels=100, n_iterations=2))
        labels = segmenter.run()

        assert segmenter.step == 1
        assert labels.min() >= 0

    def test_deterministic(self, noise_image):
        config = SlicConfig(n_superpixels=8, compactness=3, n_iterations=3)
        first = SlicSegmenter(noise_image, config).run()
        second = SlicSegmenter(noise_image, config).run()

        np.testing.assert_array_equal(first, second)
