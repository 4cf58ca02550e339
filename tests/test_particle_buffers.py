import numpy as np
import pytest

from errors import InvariantError
from particle_buffers import (
    QUAD_INDICES, QUAD_POSITIONS, QUAD_UVS, build_buffers,
)
from visibility import Visibility


def _vis(indices):
    indices = np.asarray(indices, dtype=np.uint32)
    return Visibility(indices, len(indices))


def test_quad_template():
    b = build_buffers(_vis([0]), 1, 1)
    np.testing.assert_array_equal(b.quad_positions, [
        [-0.5, 0.5, 0.0], [0.5, 0.5, 0.0],
        [-0.5, -0.5, 0.0], [0.5, -0.5, 0.0]])
    np.testing.assert_array_equal(b.quad_uvs, [[0, 0], [1, 0], [0, 1], [1, 1]])
    np.testing.assert_array_equal(b.quad_indices, [0, 2, 1, 2, 3, 1])
    assert b.quad_indices.dtype == np.uint16


def test_template_is_independent_of_count():
    for n in (0, 1, 50):
        b = build_buffers(_vis(range(n)), 10, 5)
        assert b.quad_positions is QUAD_POSITIONS
        assert b.quad_uvs is QUAD_UVS
        assert b.quad_indices is QUAD_INDICES


def test_single_visible_pixel():
    b = build_buffers(_vis([1]), 2, 1)
    np.testing.assert_array_equal(b.pixel_indices, [1])
    np.testing.assert_array_equal(b.offsets, [[1, 0, 0]])
    assert b.num_visible == 1


def test_grid_offsets(rng):
    width, height = 7, 5
    indices = [0, 3, 6, 7, 13, 20, 34]
    b = build_buffers(_vis(indices), width, height, rng)
    expected = np.array([[i % width, i // width, 0] for i in indices])
    np.testing.assert_array_equal(b.offsets, expected)
    np.testing.assert_array_equal(b.pixel_indices, indices)
    assert b.offsets.dtype == np.float32
    assert b.pixel_indices.dtype == np.uint32


def test_empty_set():
    b = build_buffers(_vis([]), 2, 2)
    assert b.num_visible == 0
    assert b.pixel_indices.shape == (0,)
    assert b.offsets.shape == (0, 3)
    assert b.angles.shape == (0,)


def test_angles_in_range():
    n = 20000
    b = build_buffers(_vis(range(n)), 200, 100, np.random.default_rng(0))
    assert b.angles.dtype == np.float32
    assert np.all(b.angles >= 0.0)
    assert np.all(b.angles.astype(np.float64) < np.pi)
    assert b.angles.std() > 0.5


def test_seeded_generator_is_reproducible():
    vis = _vis(range(100))
    a = build_buffers(vis, 10, 10, np.random.default_rng(5))
    b = build_buffers(vis, 10, 10, np.random.default_rng(5))
    c = build_buffers(vis, 10, 10, np.random.default_rng(6))
    np.testing.assert_array_equal(a.angles, b.angles)
    assert not np.array_equal(a.angles, c.angles)
    np.testing.assert_array_equal(a.offsets, c.offsets)
    np.testing.assert_array_equal(a.pixel_indices, c.pixel_indices)


def test_inputs_untouched_and_outputs_read_only():
    indices = np.array([2, 4, 5], dtype=np.uint32)
    vis = Visibility(indices, 3)
    b = build_buffers(vis, 3, 2)
    np.testing.assert_array_equal(indices, [2, 4, 5])
    assert b.pixel_indices is not indices
    for a in (b.pixel_indices, b.offsets, b.angles):
        assert not a.flags.writeable


def test_count_mismatch_is_invariant_error():
    vis = Visibility(np.array([1, 2], dtype=np.uint32), 3)
    with pytest.raises(InvariantError):
        build_buffers(vis, 4, 1)


@pytest.mark.parametrize("indices", [[2, 1], [1, 1], [0, 4]])
def test_bad_indices_are_invariant_errors(indices):
    with pytest.raises(InvariantError):
        build_buffers(_vis(indices), 2, 2)


def test_oversized_image():
    with pytest.raises(InvariantError):
        build_buffers(_vis([]), 2 ** 16, 2 ** 16 + 1)
