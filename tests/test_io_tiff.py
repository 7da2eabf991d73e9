# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

import io
import logging
import struct
import sys

import numpy as np
import pytest

from smlm import io as smlm_io
from smlm.exceptions import (ErrorKind, FormatError, MalformedStringWarning,
                             SizeMismatchError, UnsupportedFormatError)
from smlm.io import tiff


@pytest.fixture
def frames():
    rng = np.random.default_rng(12)
    return [rng.integers(0, 65536, size=(8, 10), dtype=np.uint16)
            for _ in range(3)]


def decode(buf):
    dec = tiff.TiffDecoder(io.BytesIO(buf))
    return list(dec.iter_frames()), dec


class TestTiffDecoder:
    @pytest.mark.parametrize("bo", ["<", ">"])
    def test_start(self, make_tiff, frames, bo):
        """io.tiff.TiffDecoder.start: byte order and first directory"""
        dec = tiff.TiffDecoder(io.BytesIO(make_tiff(frames[:1], bo)))
        dec.start()
        assert dec.byte_order == bo
        assert dec.needs_swap == ((bo == "<") != (sys.byteorder == "little"))
        # first directory comes after the header and image data
        assert dec.first_directory >= 8 + frames[0].nbytes

    def test_bad_mark(self, make_tiff, frames):
        """io.tiff.TiffDecoder: invalid byte order mark"""
        with pytest.raises(FormatError) as e:
            decode(make_tiff(frames, mark=b"IM"))
        assert e.value.kind == ErrorKind.FORMAT

    def test_bad_check(self, make_tiff, frames):
        """io.tiff.TiffDecoder: invalid check constant"""
        with pytest.raises(FormatError):
            decode(make_tiff(frames, check=43))

    def test_truncated_header(self):
        """io.tiff.TiffDecoder: file too short"""
        with pytest.raises(FormatError):
            decode(b"II*")

    def test_parse_before_start(self, make_tiff, frames):
        """io.tiff.TiffDecoder.parse_directory: `start` not called"""
        dec = tiff.TiffDecoder(io.BytesIO(make_tiff(frames)))
        with pytest.raises(RuntimeError):
            dec.parse_directory()

    @pytest.mark.parametrize("bo", ["<", ">"])
    @pytest.mark.parametrize("rps", [None, 1, 3, 8, 100])
    def test_read_frames(self, make_tiff, frames, bo, rps):
        """io.tiff.TiffDecoder: read single and multi-strip frames"""
        res, dec = decode(make_tiff(frames, bo, rows_per_strip=rps))
        assert len(res) == len(frames)
        for r, f in zip(res, frames):
            assert r.dtype == np.uint16
            np.testing.assert_array_equal(r, f)
        if rps is None or rps >= 8:
            assert len(dec.metadata.strip_offsets) == 1
        else:
            assert len(dec.metadata.strip_offsets) == -(-8 // rps)

    def test_byte_order_equivalence(self, make_tiff, frames):
        """io.tiff.TiffDecoder: little and big endian yield the same data"""
        le, _ = decode(make_tiff(frames, "<", rows_per_strip=3))
        be, _ = decode(make_tiff(frames, ">", rows_per_strip=5))
        for a, b in zip(le, be):
            np.testing.assert_array_equal(a, b)

    def test_long_dimensions(self, make_tiff, frames):
        """io.tiff.TiffDecoder: image dimensions stored as LONG"""
        res, dec = decode(make_tiff(frames[:1], dim_type=4))
        np.testing.assert_array_equal(res[0], frames[0])
        assert dec.metadata.width == 10
        assert dec.metadata.height == 8

    def test_single_pixel(self, make_tiff):
        """io.tiff.TiffDecoder: 1x1 image"""
        f = np.array([[4321]], dtype=np.uint16)
        res, _ = decode(make_tiff([f], ">"))
        np.testing.assert_array_equal(res[0], f)

    def test_parse_directory(self, make_tiff, frames):
        """io.tiff.TiffDecoder.parse_directory: metadata and chaining"""
        bo = ">"
        extra = [(282, 5, 1, struct.pack(bo + "II", 300, 2)),
                 (283, 5, 1, struct.pack(bo + "II", 150, 1)),
                 (296, 3, 1, struct.pack(bo + "H", 3)),
                 (305, 2, 4, b"abc\0"),
                 (339, 3, 1, struct.pack(bo + "H", 1))]
        buf = make_tiff(frames[:2], bo, rows_per_strip=3,
                        description=b"some description\0",
                        extra_entries=extra)
        dec = tiff.TiffDecoder(io.BytesIO(buf))
        dec.start()
        nxt = dec.parse_directory()
        md = dec.metadata
        assert md.width == 10
        assert md.height == 8
        assert md.bits_per_sample == [16]
        assert md.samples_per_pixel == 1
        assert md.compression is tiff.Compression.NONE
        assert md.photometric is tiff.Photometric.BLACK_IS_ZERO
        assert md.rows_per_strip == 3
        assert len(md.strip_offsets) == 3
        assert md.strip_byte_counts == [60, 60, 40]
        assert md.x_resolution == (300, 2)
        assert md.y_resolution == (150, 1)
        assert md.resolution_unit is tiff.ResolutionUnit.CENTIMETER
        assert md.description == "some description"
        assert md.software == "abc"
        assert md.sample_formats == [tiff.SampleFormat.UNSIGNED]

        assert nxt != 0
        assert dec.parse_directory(nxt) == 0
        assert dec.metadata.description == "some description"

    @pytest.mark.parametrize("bo", ["<", ">"])
    @pytest.mark.parametrize("values", [[1, 3, 2], [1, 7], [2]])
    def test_short_array(self, make_tiff, frames, bo, values):
        """io.tiff.TiffDecoder: inline and out-of-line SHORT arrays"""
        fmt = bo + "H" * len(values)
        extra = [(339, 3, len(values), struct.pack(fmt, *values))]
        res, dec = decode(make_tiff(frames[:1], bo, extra_entries=extra))
        np.testing.assert_array_equal(res[0], frames[0])
        assert dec.metadata.sample_formats == values
        # known values become enum members, unknown ones stay ints
        for v, s in zip(values, dec.metadata.sample_formats):
            if v == 7:
                assert type(s) is int
            else:
                assert s is tiff.SampleFormat(v)

    @pytest.mark.parametrize("bo", ["<", ">"])
    @pytest.mark.parametrize("rps", [1, 3, 4, 8])
    def test_short_strips(self, make_tiff, frames, bo, rps):
        """io.tiff.TiffDecoder: strip offsets and byte counts as SHORT"""
        res, dec = decode(make_tiff(frames, bo, rows_per_strip=rps,
                                    strip_type=3))
        for r, f in zip(res, frames):
            np.testing.assert_array_equal(r, f)
        n_strips = -(-8 // rps)
        assert len(dec.metadata.strip_offsets) == n_strips
        exp_counts = [rps * 20] * (8 // rps)
        if 8 % rps:
            exp_counts.append(8 % rps * 20)
        assert dec.metadata.strip_byte_counts == exp_counts
        offsets = dec.metadata.strip_offsets
        assert offsets == sorted(offsets)
        assert all(b - a == c for a, b, c in
                   zip(offsets, offsets[1:], exp_counts))

    def test_fresh_metadata(self, make_tiff, frames):
        """io.tiff.TiffDecoder.parse_directory: no stale metadata"""
        dec = tiff.TiffDecoder(io.BytesIO(make_tiff(frames[:1])))
        dec.start()
        dec.metadata.description = "stale"
        dec.metadata.x_resolution = (1, 1)
        dec.parse_directory()
        assert dec.metadata.description is None
        assert dec.metadata.x_resolution is None

    def test_unknown_tag(self, make_tiff, frames, caplog):
        """io.tiff.TiffDecoder.parse_directory: skip unknown tags"""
        extra = [(65000, 3, 1, struct.pack("<H", 7))]
        with caplog.at_level(logging.INFO, logger="smlm.io.tiff"):
            res, _ = decode(make_tiff(frames[:1], extra_entries=extra))
        np.testing.assert_array_equal(res[0], frames[0])
        assert "unprocessed tag: 65000" in caplog.text

    def test_string_without_nul(self, make_tiff, frames):
        """io.tiff.TiffDecoder: string lacking the terminating NUL"""
        buf = make_tiff(frames[:1], description=b"no terminator")
        dec = tiff.TiffDecoder(io.BytesIO(buf))
        dec.start()
        with pytest.warns(MalformedStringWarning):
            dec.parse_directory()
        assert dec.metadata.description == "no terminator"
        np.testing.assert_array_equal(dec.read_pixels(), frames[0])

    def test_wrong_entry_type(self, make_tiff, frames):
        """io.tiff.TiffDecoder: entry of unexpected type"""
        extra = [(305, 3, 1, struct.pack("<H", 1))]
        with pytest.raises(FormatError):
            decode(make_tiff(frames[:1], extra_entries=extra))

    @pytest.mark.parametrize("tag,value", [(258, 8), (277, 3)])
    def test_unsupported(self, make_tiff, frames, tag, value):
        """io.tiff.TiffDecoder.read_pixels: not 16 bit grayscale"""
        buf = bytearray(make_tiff(frames[:1]))
        dec = tiff.TiffDecoder(io.BytesIO(bytes(buf)))
        dec.start()
        dec.parse_directory()
        # Patch the value of the entry in the directory
        n = struct.unpack("<H", buf[dec.first_directory:
                                    dec.first_directory+2])[0]
        for i in range(n):
            pos = dec.first_directory + 2 + 12 * i
            if struct.unpack("<H", buf[pos:pos+2])[0] == tag:
                buf[pos+8:pos+10] = struct.pack("<H", value)
        with pytest.raises(UnsupportedFormatError) as e:
            decode(bytes(buf))
        assert e.value.kind == ErrorKind.UNSUPPORTED_FORMAT

    def test_compressed(self, make_tiff, frames):
        """io.tiff.TiffDecoder.read_pixels: compressed data"""
        dec = tiff.TiffDecoder(io.BytesIO(make_tiff(frames[:1])))
        dec.start()
        dec.parse_directory()
        dec.metadata.compression = 5
        with pytest.raises(UnsupportedFormatError):
            dec.read_pixels()

    def test_strip_count_mismatch(self, make_tiff, frames):
        """io.tiff.TiffDecoder.read_pixels: RowsPerStrip inconsistent"""
        buf = make_tiff(frames[:1], declared_rows_per_strip=4)
        with pytest.raises(SizeMismatchError) as e:
            decode(buf)
        assert e.value.kind == ErrorKind.SIZE_MISMATCH

    def test_truncated_data(self, make_tiff, frames):
        """io.tiff.TiffDecoder.read_pixels: byte count too small"""
        dec = tiff.TiffDecoder(io.BytesIO(make_tiff(frames[:1])))
        dec.start()
        dec.parse_directory()
        dec.metadata.strip_byte_counts = [frames[0].nbytes - 2]
        with pytest.raises(SizeMismatchError):
            dec.read_pixels()

    def test_missing_strips(self, make_tiff, frames):
        """io.tiff.TiffDecoder.read_pixels: no strip offsets"""
        dec = tiff.TiffDecoder(io.BytesIO(make_tiff(frames[:1])))
        dec.start()
        dec.parse_directory()
        dec.metadata.strip_offsets = []
        with pytest.raises(FormatError):
            dec.read_pixels()

    def test_file_name(self, make_tiff, frames, tmp_path):
        """io.tiff.read_frames: read from file name"""
        p = tmp_path / "test.tif"
        p.write_bytes(make_tiff(frames, ">", rows_per_strip=2))
        res = smlm_io.read_frames(p)
        assert len(res) == len(frames)
        for r, f in zip(res, frames):
            np.testing.assert_array_equal(r, f)


class TestSaveAsTiff:
    @pytest.mark.parametrize("bo", ["<", ">"])
    def test_roundtrip(self, frames, tmp_path, bo):
        """io.tiff.save_as_tiff: read back written files"""
        p = tmp_path / "test.tif"
        smlm_io.save_as_tiff(p, frames, contiguous=False, byteorder=bo)
        res = smlm_io.read_frames(p)
        assert len(res) == len(frames)
        for r, f in zip(res, frames):
            np.testing.assert_array_equal(r, f)

    def test_metadata(self, frames, tmp_path):
        """io.tiff.save_as_tiff: YAML metadata in ImageDescription"""
        p = tmp_path / "test.tif"
        md = {"exposure": 0.01, "laser": "640 nm"}
        smlm_io.save_as_tiff(p, frames[:1], md, contiguous=False)
        with tiff.TiffDecoder(p) as dec:
            dec.start()
            dec.parse_directory()
            assert dec.metadata.software == "smlm.io"
            assert "exposure: 0.01" in dec.metadata.description
            np.testing.assert_array_equal(dec.read_pixels(), frames[0])
