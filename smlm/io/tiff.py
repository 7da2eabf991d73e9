# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""TIFF I/O

Reading is done by :py:class:`TiffDecoder`, a small decoder for the kind of
files produced by scientific cameras: uncompressed, one 16 bit sample per
pixel, stored in strips. Anything else results in an exception instead of a
best effort decode.

Writing is done via :py:mod:`tifffile` (see :py:func:`save_as_tiff`).
"""
import collections
import collections.abc
import enum
import itertools
import logging
import struct
import sys
import warnings
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Mapping, Optional, Union

import numpy as np
import tifffile
import yaml

from ..exceptions import (FormatError, MalformedStringWarning,
                          SizeMismatchError, UnsupportedFormatError)


_logger = logging.getLogger(__name__)


class Tag(enum.IntEnum):
    """Directory entry tags understood by :py:class:`TiffDecoder`"""
    ImageWidth = 0x100
    ImageLength = 0x101
    BitsPerSample = 0x102
    Compression = 0x103
    PhotometricInterpretation = 0x106
    FillOrder = 0x10a
    ImageDescription = 0x10e
    StripOffsets = 0x111
    Orientation = 0x112
    SamplesPerPixel = 0x115
    RowsPerStrip = 0x116
    StripByteCounts = 0x117
    XResolution = 0x11a
    YResolution = 0x11b
    PlanarConfiguration = 0x11c
    ResolutionUnit = 0x128
    Software = 0x131
    SampleFormat = 0x153
    ImageID = 0x800d


class EntryType(enum.IntEnum):
    """Data types of directory entries"""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5


class Compression(enum.IntEnum):
    NONE = 1
    CCITT = 2
    PACKBITS = 32773


class Photometric(enum.IntEnum):
    WHITE_IS_ZERO = 0
    BLACK_IS_ZERO = 1
    RGB = 2
    PALETTE = 3
    TRANSPARENCY_MASK = 4


class ResolutionUnit(enum.IntEnum):
    NONE = 1
    INCH = 2
    CENTIMETER = 3


class SampleFormat(enum.IntEnum):
    UNSIGNED = 1
    TWO_COMPLEMENT = 2
    IEEE_FLOAT = 3
    UNDEFINED = 4


def _as_enum(cls, value):
    # values not listed in `cls` are kept as plain ints
    try:
        return cls(value)
    except ValueError:
        return value


DirectoryEntry = collections.namedtuple(
    "DirectoryEntry", ["tag", "type", "count", "value", "raw"])
DirectoryEntry.__doc__ = """A single record of an image file directory

Attributes
----------
tag : int
    What the entry describes, see :py:class:`Tag`
type : int
    Data type, see :py:class:`EntryType`
count : int
    Number of values
value : int
    The 4 byte value field as an unsigned integer. Either the value itself (if
    it fits) or the offset of the data in the file.
raw : bytes
    The 4 byte value field as stored in the file
"""

entry_size = 12
"""Size of a directory entry in bytes"""
inline_capacity = {EntryType.BYTE: 4, EntryType.ASCII: 4, EntryType.SHORT: 2,
                   EntryType.LONG: 1}
"""How many values of each type fit into the value field of an entry"""
default_rows_per_strip = 2**32 - 1
"""RowsPerStrip if not specified in the directory, i.e., single strip"""


class FrameMetadata:
    """Metadata of a single image as read from its image file directory

    Compression, photometric interpretation, resolution unit and sample
    formats are converted to the respective enums if the value is known.
    """
    width: Optional[int]
    height: Optional[int]
    bits_per_sample: List[int]
    samples_per_pixel: int
    compression: Union[Compression, int]
    photometric: Union[None, Photometric, int]
    fill_order: Optional[int]
    orientation: Optional[int]
    strip_offsets: List[int]
    strip_byte_counts: List[int]
    rows_per_strip: int
    x_resolution: Optional[tuple]
    """(numerator, denominator)"""
    y_resolution: Optional[tuple]
    """(numerator, denominator)"""
    resolution_unit: Union[None, ResolutionUnit, int]
    planar_configuration: Optional[int]
    sample_formats: List[Union[SampleFormat, int]]
    description: Optional[str]
    software: Optional[str]
    image_id: Optional[str]

    def __init__(self):
        # Defaults as given by the TIFF specification where there is one
        self.width = None
        self.height = None
        self.bits_per_sample = [1]
        self.samples_per_pixel = 1
        self.compression = Compression.NONE
        self.photometric = None
        self.fill_order = None
        self.orientation = None
        self.strip_offsets = []
        self.strip_byte_counts = []
        self.rows_per_strip = default_rows_per_strip
        self.x_resolution = None
        self.y_resolution = None
        self.resolution_unit = None
        self.planar_configuration = None
        self.sample_formats = []
        self.description = None
        self.software = None
        self.image_id = None

    def __repr__(self):
        return "FrameMetadata(width={}, height={}, strips={})".format(
            self.width, self.height, len(self.strip_offsets))


class TiffDecoder:
    """Read frames from a multi-page TIFF file

    Call :py:meth:`start` first, then :py:meth:`parse_directory` and
    :py:meth:`read_pixels` for each frame. :py:meth:`iter_frames` does all
    of that.

    Examples
    --------
    >>> with TiffDecoder("stack.tif") as dec:
    ...     for frame in dec.iter_frames():
    ...         print(frame.shape)
    (64, 64)
    (64, 64)
    """
    byte_order: Optional[str]
    """:py:mod:`struct` byte order character of the file, ``"<"`` or
    ``">"``. `None` before :py:meth:`start` was called.
    """
    needs_swap: bool
    """Whether the file's byte order differs from the host's"""
    first_directory: int
    """Offset of the first image file directory"""
    metadata: FrameMetadata
    """Metadata read by the last call to :py:meth:`parse_directory`"""

    def __init__(self, file: Union[str, Path, BinaryIO]):
        """Parameters
        ----------
        file
            File name or binary stream supporting :py:meth:`seek`. If a file
            name is given, the file is opened and closed again by
            :py:meth:`close`.
        """
        if isinstance(file, (str, Path)):
            self._file = open(file, "rb")
            self._close_file = True
        else:
            self._file = file
            self._close_file = False
        self.byte_order = None
        self.needs_swap = False
        self.first_directory = 0
        self.metadata = FrameMetadata()

    def close(self):
        """Close the file if it was opened by this instance"""
        if self._close_file:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _read(self, size: int) -> bytes:
        b = self._file.read(size)
        if len(b) != size:
            raise FormatError("Unexpected end of file")
        return b

    def _read16(self) -> int:
        return struct.unpack(self.byte_order + "H", self._read(2))[0]

    def _read32(self) -> int:
        return struct.unpack(self.byte_order + "I", self._read(4))[0]

    def _read_entry(self) -> DirectoryEntry:
        b = self._read(entry_size)
        tag, typ, count, value = struct.unpack(self.byte_order + "HHII", b)
        return DirectoryEntry(tag, typ, count, value, b[8:])

    def start(self):
        """Read the file header

        Determine the byte order and the offset of the first directory.

        Raises
        ------
        FormatError
            Byte order mark is neither "II" nor "MM" or the check constant is
            not 42.
        """
        self._file.seek(0)
        mark = self._file.read(2)
        if mark == b"II":
            self.byte_order = "<"
        elif mark == b"MM":
            self.byte_order = ">"
        else:
            raise FormatError(f"Unrecognized byte order mark {mark!r}")
        self.needs_swap = ((self.byte_order == "<") !=
                           (sys.byteorder == "little"))

        check = self._read16()
        if check != 42:
            raise FormatError(f"Bad check constant {check}, expected 42")
        self.first_directory = self._read32()
        _logger.debug("[%s]:%s, first directory at %s", mark.decode(), check,
                      self.first_directory)

    def parse_directory(self, offset: int = 0) -> int:
        """Read an image file directory

        The result is stored in :py:attr:`metadata`.

        Parameters
        ----------
        offset
            Position of the directory in the file. 0 means the first
            directory.

        Returns
        -------
        Offset of the next directory. 0 if this is the last one.
        """
        if self.byte_order is None:
            raise RuntimeError("`start` needs to be called first.")

        self._file.seek(offset or self.first_directory)
        n_entries = self._read16()
        _logger.debug("%s directory entries", n_entries)
        entries = [self._read_entry() for _ in range(n_entries)]
        next_offset = self._read32()

        md = FrameMetadata()
        for e in entries:
            try:
                tag = Tag(e.tag)
            except ValueError:
                _logger.info("unprocessed tag: %s", e.tag)
                continue
            self._apply_entry(md, tag, e)
        self.metadata = md

        _logger.debug("next directory at %s", next_offset)
        return next_offset

    def _apply_entry(self, md: FrameMetadata, tag: Tag, e: DirectoryEntry):
        if tag == Tag.ImageWidth:
            md.width = self._to_int(e)
        elif tag == Tag.ImageLength:
            md.height = self._to_int(e)
        elif tag == Tag.BitsPerSample:
            md.bits_per_sample = self._get_shorts(e)
        elif tag == Tag.Compression:
            md.compression = _as_enum(Compression, self._to_int(e))
        elif tag == Tag.PhotometricInterpretation:
            md.photometric = _as_enum(Photometric, self._to_int(e))
        elif tag == Tag.FillOrder:
            md.fill_order = self._to_int(e)
        elif tag == Tag.ImageDescription:
            md.description = self._get_string(e)
        elif tag == Tag.StripOffsets:
            md.strip_offsets = self._get_longs(e)
        elif tag == Tag.Orientation:
            md.orientation = self._to_int(e)
        elif tag == Tag.SamplesPerPixel:
            md.samples_per_pixel = self._to_int(e)
        elif tag == Tag.RowsPerStrip:
            md.rows_per_strip = self._to_int(e)
        elif tag == Tag.StripByteCounts:
            md.strip_byte_counts = self._get_longs(e)
        elif tag == Tag.XResolution:
            md.x_resolution = self._get_rational(e)
        elif tag == Tag.YResolution:
            md.y_resolution = self._get_rational(e)
        elif tag == Tag.PlanarConfiguration:
            md.planar_configuration = self._to_int(e)
        elif tag == Tag.ResolutionUnit:
            md.resolution_unit = _as_enum(ResolutionUnit, self._to_int(e))
        elif tag == Tag.Software:
            md.software = self._get_string(e)
        elif tag == Tag.SampleFormat:
            md.sample_formats = [_as_enum(SampleFormat, v)
                                 for v in self._get_shorts(e)]
        elif tag == Tag.ImageID:
            md.image_id = self._get_string(e)
        else:
            raise ValueError(f"No handler for {tag!r}")

    @staticmethod
    def _check_type(e: DirectoryEntry, typ: EntryType):
        if e.type != typ:
            raise FormatError(
                f"Entry type error: tag {e.tag} has type {e.type}, expected "
                f"{typ.name}")

    def _inline_shorts(self, e: DirectoryEntry) -> tuple:
        return struct.unpack(self.byte_order + "HH", e.raw)

    def _to_int(self, e: DirectoryEntry) -> int:
        if e.type == EntryType.LONG:
            return e.value
        self._check_type(e, EntryType.SHORT)
        return self._inline_shorts(e)[0]

    def _get_shorts(self, e: DirectoryEntry) -> List[int]:
        self._check_type(e, EntryType.SHORT)
        if e.count <= inline_capacity[EntryType.SHORT]:
            return list(self._inline_shorts(e)[:e.count])
        self._file.seek(e.value)
        return [self._read16() for _ in range(e.count)]

    def _get_longs(self, e: DirectoryEntry) -> List[int]:
        # Strip offsets and byte counts may be SHORT or LONG
        if e.type == EntryType.SHORT:
            return self._get_shorts(e)
        self._check_type(e, EntryType.LONG)
        if e.count <= inline_capacity[EntryType.LONG]:
            return [e.value][:e.count]
        self._file.seek(e.value)
        return [self._read32() for _ in range(e.count)]

    def _get_rational(self, e: DirectoryEntry) -> tuple:
        self._check_type(e, EntryType.RATIONAL)
        self._file.seek(e.value)
        return self._read32(), self._read32()

    def _get_string(self, e: DirectoryEntry) -> str:
        self._check_type(e, EntryType.ASCII)
        if e.count <= inline_capacity[EntryType.ASCII]:
            b = e.raw[:e.count]
        else:
            self._file.seek(e.value)
            b = self._read(e.count)
        if b.endswith(b"\0"):
            b = b[:-1]
        else:
            warnings.warn(f"String of tag {e.tag} does not end with '\\0'",
                          MalformedStringWarning)
        return b.decode("latin-1")

    def read_pixels(self) -> np.ndarray:
        """Read the image data described by :py:attr:`metadata`

        Returns
        -------
        Image data as 16 bit unsigned integers, shape ``(height, width)``

        Raises
        ------
        UnsupportedFormatError
            Not a single 16 bit sample per pixel, or compressed data
        SizeMismatchError
            Number of strips or number of bytes inconsistent with the image
            dimensions
        """
        md = self.metadata
        if md.samples_per_pixel != 1 or md.bits_per_sample[0] != 16:
            raise UnsupportedFormatError(
                "Unprocessed samples_per_pixel ({}) or bits_per_sample "
                "({})".format(md.samples_per_pixel, md.bits_per_sample))
        if md.compression != Compression.NONE:
            raise UnsupportedFormatError(
                f"Unsupported compression {md.compression}")
        if md.width is None or md.height is None or not md.strip_offsets:
            raise FormatError("Image dimensions or strip offsets missing")

        size = md.width * md.height * 2
        if md.rows_per_strip < 1:
            raise SizeMismatchError(
                f"Invalid rows_per_strip {md.rows_per_strip}")
        n_strips = -(-md.height // md.rows_per_strip)
        if (n_strips != len(md.strip_offsets) or
                n_strips != len(md.strip_byte_counts)):
            raise SizeMismatchError(
                "Mismatch number of strip_offsets: expected {}, got {} "
                "offsets and {} byte counts".format(
                    n_strips, len(md.strip_offsets),
                    len(md.strip_byte_counts)))

        strips = []
        for off, cnt in zip(md.strip_offsets, md.strip_byte_counts):
            self._file.seek(off)
            strips.append(self._file.read(cnt))
        data = b"".join(strips)
        if len(data) != size:
            raise SizeMismatchError(
                f"Image byte size mismatch: expected {size}, got {len(data)}")

        img = np.frombuffer(data, dtype=np.uint16).reshape(
            (md.height, md.width))
        # byteswap() and copy() both return fresh, writable arrays
        return img.byteswap() if self.needs_swap else img.copy()

    def iter_frames(self) -> Iterator[np.ndarray]:
        """Iterate over all frames in the file

        Frames are decoded one at a time. Any decoding error ends the
        iteration by raising.

        Yields
        ------
        Image data of each frame
        """
        self.start()
        offset = self.first_directory
        while offset:
            offset = self.parse_directory(offset)
            yield self.read_pixels()


def read_frames(filename: Union[str, Path]) -> List[np.ndarray]:
    """Read all frames of a TIFF file

    Parameters
    ----------
    filename
        File to read

    Returns
    -------
    List of image arrays
    """
    with TiffDecoder(filename) as dec:
        return list(dec.iter_frames())


def save_as_tiff(
    filename: Union[str, Path],
    frames: Iterable[np.ndarray],
    metadata: Union[None, Iterable[Mapping], Mapping] = None,
    contiguous: bool = True,
    byteorder: str = "<",
    rows_per_strip: Optional[int] = None,
):
    """Write a sequence of images to a TIFF stack

    Metadata are serialized to YAML and saved as the ImageDescription tag.

    Parameters
    ----------
    filename
        Name of the output file
    frames
        Frames to be written to TIFF file.
    metadata:
        Metadata to be written. If a single dict, save with the first frame.
        If an iterable, save each entry with the corresponding frame.
    contiguous
        Whether to write to the TIFF file contiguously or not.
    byteorder
        ``"<"`` for little endian, ``">"`` for big endian files
    rows_per_strip
        Number of image rows per strip. If `None`, let :py:mod:`tifffile`
        decide.
    """
    if metadata is None:
        metadata = []
    elif isinstance(metadata, collections.abc.Mapping):
        metadata = [metadata]

    with tifffile.TiffWriter(filename, byteorder=byteorder) as tw:
        for f, md in zip(frames,
                         itertools.chain(metadata, itertools.repeat({}))):
            desc = None
            if md:
                try:
                    desc = yaml.safe_dump(dict(md))
                except yaml.YAMLError:
                    _logger.error(
                        f"{filename}: Failed to serialize metadata to YAML")

            kwargs = {}
            if rows_per_strip is not None:
                kwargs["rowsperstrip"] = rows_per_strip
            tw.write(f, software="smlm.io", description=desc,
                     contiguous=contiguous, metadata=None, **kwargs)
