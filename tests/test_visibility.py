import dataclasses

import numpy as np
import pytest

from config import ParticleConfig
from image_sampler import sample_image
from visibility import filter_visible

from conftest import bgr_from_red


def test_threshold_is_strict():
    src = sample_image(bgr_from_red([[10, 200, 34, 35]]))
    vis = filter_visible(src, ParticleConfig(threshold=34))
    np.testing.assert_array_equal(vis.indices, [1, 3])
    assert vis.num_visible == len(vis.indices) == 2


def test_default_config_uses_34():
    src = sample_image(bgr_from_red([[34, 35]]))
    np.testing.assert_array_equal(filter_visible(src).indices, [1])


def test_indices_follow_flipped_raster_order():
    # bottom image row becomes row 0
    src = sample_image(bgr_from_red([[200, 0],
                                     [0, 200]]))
    vis = filter_visible(src)
    np.testing.assert_array_equal(vis.indices, [1, 2])


def test_all_dark_is_empty_not_an_error():
    src = sample_image(bgr_from_red(np.zeros((2, 2))))
    vis = filter_visible(src)
    assert vis.num_visible == 0
    assert len(vis.indices) == 0


def test_discard_disabled_keeps_everything(photo):
    src = sample_image(photo)
    vis = filter_visible(src, ParticleConfig(discard_enabled=False))
    assert vis.num_visible == src.num_pixels
    np.testing.assert_array_equal(vis.indices, np.arange(src.num_pixels))


@pytest.mark.parametrize("threshold, expected", [
    (-1, 4),
    (-0.5, 4),
    (255, 0),
    (1000, 0),
])
def test_degenerate_thresholds(threshold, expected):
    src = sample_image(bgr_from_red([[0, 255], [128, 254]]))
    vis = filter_visible(src, ParticleConfig(threshold=threshold))
    assert vis.num_visible == expected == len(vis.indices)


def test_fractional_threshold():
    src = sample_image(bgr_from_red([[34, 35, 36]]))
    vis = filter_visible(src, ParticleConfig(threshold=34.5))
    np.testing.assert_array_equal(vis.indices, [1, 2])


def test_ascending_and_read_only(photo):
    vis = filter_visible(sample_image(photo))
    assert np.all(np.diff(vis.indices.astype(np.int64)) > 0)
    assert vis.indices.dtype == np.uint32
    assert not vis.indices.flags.writeable


def test_count_matches_red_channel(photo):
    src = sample_image(photo)
    vis = filter_visible(src)
    assert vis.num_visible == int(np.sum(photo[:, :, 2] > 34))


def test_result_is_immutable(photo):
    vis = filter_visible(sample_image(photo))
    assert len(vis) == vis.num_visible
    with pytest.raises(dataclasses.FrozenInstanceError):
        vis.num_visible = 0
    with pytest.raises(dataclasses.FrozenInstanceError):
        vis.indices = np.arange(3)
