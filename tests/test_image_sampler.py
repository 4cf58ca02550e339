import numpy as np
import cv2
import pytest

from errors import DecodeError
from image_sampler import decode_image, load_image, sample_image

from conftest import bgr_from_red


def test_sample_layout_and_length():
    img = bgr_from_red([[10, 200]])
    src = sample_image(img)
    assert (src.width, src.height) == (2, 1)
    assert src.pixels.dtype == np.uint8
    assert len(src.pixels) == 2 * 1 * 4
    np.testing.assert_array_equal(src.red, [10, 200])
    # opaque alpha added for 3-channel input
    np.testing.assert_array_equal(src.pixels[3::4], [255, 255])


def test_rows_are_flipped():
    img = bgr_from_red([[1, 2, 3],
                        [4, 5, 6]])
    src = sample_image(img)
    np.testing.assert_array_equal(src.red, [4, 5, 6, 1, 2, 3])
    np.testing.assert_array_equal(src.as_rgba()[0, :, 0], [4, 5, 6])


def test_channels_are_rgba():
    img = np.zeros((1, 1, 4), dtype=np.uint8)
    img[0, 0] = (30, 20, 10, 128)  # B, G, R, A
    src = sample_image(img)
    np.testing.assert_array_equal(src.pixels, [10, 20, 30, 128])


def test_grayscale_and_single_channel():
    gray = np.full((2, 3), 80, dtype=np.uint8)
    for img in (gray, gray[:, :, None]):
        src = sample_image(img)
        np.testing.assert_array_equal(src.as_rgba()[..., :3], 80)
        np.testing.assert_array_equal(src.as_rgba()[..., 3], 255)


def test_16bit_is_scaled():
    img = np.zeros((1, 2, 3), dtype=np.uint16)
    img[0, :, 2] = [65535, 257 * 34]
    src = sample_image(img)
    np.testing.assert_array_equal(src.red, [255, 34])


def test_source_is_not_modified_and_output_read_only():
    img = bgr_from_red([[1, 2], [3, 4]])
    before = img.copy()
    src = sample_image(img)
    np.testing.assert_array_equal(img, before)
    assert not src.pixels.flags.writeable
    with pytest.raises(ValueError):
        src.pixels[0] = 1


@pytest.mark.parametrize("img", [
    np.zeros((0, 4, 3), dtype=np.uint8),
    np.zeros((4, 0, 3), dtype=np.uint8),
    np.zeros((2, 2, 2), dtype=np.uint8),
    np.zeros((2, 2, 3, 1), dtype=np.uint8),
    np.zeros((2, 2, 3), dtype=np.float64),
    [[1, 2], [3, 4]],
])
def test_bad_arrays_raise_decode_error(img):
    with pytest.raises(DecodeError):
        sample_image(img)


def test_decode_png_bytes(photo):
    ok, data = cv2.imencode(".png", photo)
    assert ok
    np.testing.assert_array_equal(decode_image(data.tobytes()), photo)


@pytest.mark.parametrize("data", [b"", b"definitely not an image"])
def test_decode_garbage(data):
    with pytest.raises(DecodeError):
        decode_image(data)


def test_load_image(png_path, photo):
    np.testing.assert_array_equal(load_image(png_path), photo)


def test_load_missing_file(tmp_path):
    with pytest.raises(DecodeError):
        load_image(tmp_path / "missing.png")
