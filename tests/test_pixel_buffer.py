"""Tests for pixel buffers and sample conversion."""

import numpy as np
import pytest

from fingerprint_search.errors import InvalidChannelCount, MalformedBuffer
from fingerprint_search.pixel_buffer import (
    ByteBuffer, PixelBuffer, UnitBuffer, ConvertibleToByteBuffer, ConvertibleToUnitBuffer,
    bytes_to_unit, unit_to_bytes, convert_to_unit, convert_to_bytes,
)


class TestConstruction:
    """Tests for buffer validation."""

    def test_dimensions(self):
        buf = ByteBuffer(2, 3, 4, np.zeros(24, dtype=np.uint8))
        assert (buf.height, buf.width, buf.channel_count) == (2, 3, 4)
        assert buf.pixel_count == 6
        assert len(buf) == 24

    def test_sample_count_mismatch_raises(self):
        # declared 1x3 with 2 channels needs 6 samples
        with pytest.raises(MalformedBuffer, match="Expected 6 samples"):
            ByteBuffer(1, 3, 2, [0, 255, 25, 99])

    def test_zero_channels_raises(self):
        with pytest.raises(InvalidChannelCount):
            ByteBuffer(0, 0, 0, [])

    def test_out_of_range_byte_raises(self):
        with pytest.raises(MalformedBuffer):
            ByteBuffer(1, 1, 1, [256])

    def test_out_of_range_unit_raises(self):
        with pytest.raises(MalformedBuffer):
            UnitBuffer(1, 1, 1, [1.5])

    def test_nan_unit_raises(self):
        with pytest.raises(MalformedBuffer):
            UnitBuffer(1, 1, 1, [float("nan")])

    def test_unit_floats_in_byte_buffer_raise(self):
        with pytest.raises(MalformedBuffer, match="whole numbers"):
            ByteBuffer(1, 1, 3, [0.2, 0.5, 0.9])

    def test_fractional_byte_raises(self):
        with pytest.raises(MalformedBuffer, match="whole numbers"):
            ByteBuffer(1, 1, 1, [12.7])

    def test_whole_float_bytes_accepted(self):
        buf = ByteBuffer(1, 1, 3, np.array([0.0, 12.0, 255.0]))
        assert list(buf.samples) == [0, 12, 255]
        assert buf.samples.dtype == np.uint8

    def test_non_numeric_samples_raise(self):
        with pytest.raises(MalformedBuffer, match="numeric"):
            ByteBuffer(1, 1, 1, ["7"])
        with pytest.raises(MalformedBuffer, match="numeric"):
            UnitBuffer(1, 1, 1, [None])

    def test_base_class_not_instantiable(self):
        with pytest.raises(TypeError, match="ByteBuffer or UnitBuffer"):
            PixelBuffer(1, 1, 1, [5])

    def test_samples_are_read_only(self):
        buf = ByteBuffer(1, 1, 3, [1, 2, 3])
        with pytest.raises(ValueError):
            buf.samples[0] = 9

    def test_input_is_copied(self):
        data = np.array([1, 2, 3], dtype=np.uint8)
        buf = ByteBuffer(1, 1, 3, data)
        data[0] = 200
        assert buf.samples[0] == 1

    def test_empty_buffer_allowed(self):
        buf = ByteBuffer(0, 0, 3, [])
        assert len(buf) == 0

    def test_equality(self):
        assert ByteBuffer(1, 1, 1, [5]) == ByteBuffer(1, 1, 1, [5])
        assert ByteBuffer(1, 1, 1, [5]) != ByteBuffer(1, 1, 1, [6])

    def test_capabilities(self):
        buf = ByteBuffer(1, 1, 1, [5])
        assert isinstance(buf, ConvertibleToByteBuffer)
        assert isinstance(buf, ConvertibleToUnitBuffer)
        assert isinstance(buf.to_unit_buffer(), ConvertibleToByteBuffer)


class TestConversions:
    """Tests for byte <-> unit conversion semantics."""

    def test_bytes_to_unit(self):
        converted = bytes_to_unit(np.array([0, 128, 255], dtype=np.uint8))
        assert converted.dtype == np.float32
        assert converted[0] == 0.0
        assert converted[1] == pytest.approx(0.5019608, abs=1e-7)
        assert converted[2] == 1.0

    def test_unit_to_bytes_truncates(self):
        converted = unit_to_bytes(np.array([0.0, 0.5, 0.999, 1.0], dtype=np.float32))
        assert list(converted) == [0, 127, 254, 255]

    def test_empty_conversion(self):
        assert bytes_to_unit(np.array([], dtype=np.uint8)).size == 0
        assert unit_to_bytes(np.array([], dtype=np.float32)).size == 0

    def test_round_trip_within_one(self):
        values = np.arange(256, dtype=np.uint8)
        back = unit_to_bytes(bytes_to_unit(values))
        diff = np.abs(values.astype(int) - back.astype(int))
        assert diff.max() <= 1
        assert back[0] == 0
        assert back[128] == 128
        assert back[255] == 255

    def test_every_byte_survives_round_trip(self):
        values = np.arange(256, dtype=np.uint8)
        assert np.array_equal(unit_to_bytes(bytes_to_unit(values)), values)

    def test_buffer_round_trip(self):
        buf = ByteBuffer(1, 2, 2, [0, 255, 25, 99])
        unit = buf.to_unit_buffer()
        assert isinstance(unit, UnitBuffer)
        assert unit.channel_count == 2
        back = unit.to_byte_buffer()
        assert isinstance(back, ByteBuffer)
        assert np.all(np.abs(back.samples.astype(int) - buf.samples.astype(int)) <= 1)

    def test_same_encoding_conversion_is_copy(self):
        buf = ByteBuffer(1, 1, 3, [1, 2, 3])
        assert buf.to_byte_buffer() == buf
        unit = UnitBuffer(1, 1, 1, [0.25])
        assert unit.to_unit_buffer() == unit


class TestParallelConversion:
    """Chunked conversion must match the sequential path exactly."""

    def test_parallel_to_unit_matches_sequential(self):
        rng = np.random.RandomState(3)
        data = rng.randint(0, 256, 10_001).astype(np.uint8)
        parallel = convert_to_unit(data, workers=4, min_samples_per_worker=10)
        assert np.array_equal(parallel, bytes_to_unit(data))

    def test_parallel_to_bytes_matches_sequential(self):
        rng = np.random.RandomState(4)
        data = rng.random_sample(10_003).astype(np.float32)
        parallel = convert_to_bytes(data, workers=3, min_samples_per_worker=10)
        assert np.array_equal(parallel, unit_to_bytes(data))

    def test_below_threshold_runs_sequentially(self):
        data = np.zeros(100, dtype=np.uint8)
        converted = convert_to_unit(data, workers=4, min_samples_per_worker=1000)
        assert np.array_equal(converted, np.zeros(100, dtype=np.float32))

    def test_large_buffer_default_threshold(self):
        data = np.full(1_000_000, 255, dtype=np.uint8)
        converted = convert_to_unit(data)
        assert converted.size == 1_000_000
        assert np.all(converted == 1.0)

    def test_large_unit_to_bytes(self):
        data = np.ones(1_000_000, dtype=np.float32)
        converted = convert_to_bytes(data)
        assert int(converted.astype(np.int64).sum()) == 255 * 1_000_000
