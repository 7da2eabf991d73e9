# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

import struct

import numpy as np
import pytest

from smlm import config
from smlm.loc.psf_mle import fit


def build_tiff(frames, byte_order="<", rows_per_strip=None,
               declared_rows_per_strip=None, dim_type=3, mark=None,
               check=42, description=None, strip_type=4,
               extra_entries=()):
    """Create a TIFF file in memory

    Parameters
    ----------
    frames : list of numpy.ndarray
        Image data, converted to uint16
    byte_order : {"<", ">"}
        Little or big endian
    rows_per_strip : int or None
        Rows per strip used for writing. `None` means one strip.
    declared_rows_per_strip : int or None
        Write this as RowsPerStrip instead of the actual value
    dim_type : {3, 4}
        Entry type (SHORT or LONG) for ImageWidth and ImageLength
    strip_type : {3, 4}
        Entry type (SHORT or LONG) for StripOffsets and StripByteCounts
    mark : bytes or None
        Override the byte order mark
    check : int
        Header check constant
    description : bytes or None
        Raw ImageDescription content (including terminating NUL, if desired)
    extra_entries : iterable of (tag, type, count, payload)
        Additional entries. `payload` are the data bytes in file byte order.

    Returns
    -------
    bytes
        File content
    """
    bo = byte_order
    out = bytearray()
    if mark is None:
        mark = b"II" if bo == "<" else b"MM"
    out += mark
    out += struct.pack(bo + "HI", check, 0)
    next_pos = 4

    def add_entry(entries, tag, typ, count, payload):
        if len(payload) <= 4:
            value = payload.ljust(4, b"\0")
        else:
            if len(out) % 2:
                out.append(0)
            value = struct.pack(bo + "I", len(out))
            out.extend(payload)
        entries.append((tag, typ, count, value))

    for f in frames:
        f = np.asarray(f, dtype=np.uint16)
        h, w = f.shape
        rps = h if rows_per_strip is None else rows_per_strip

        offsets = []
        counts = []
        for i in range(0, h, rps):
            b = f[i:i+rps].astype(bo + "u2").tobytes()
            offsets.append(len(out))
            counts.append(len(b))
            out.extend(b)

        dim_fmt = "H" if dim_type == 3 else "I"
        if declared_rows_per_strip is None:
            declared_rows_per_strip = rps
        entries = []
        add_entry(entries, 256, dim_type, 1, struct.pack(bo + dim_fmt, w))
        add_entry(entries, 257, dim_type, 1, struct.pack(bo + dim_fmt, h))
        add_entry(entries, 258, 3, 1, struct.pack(bo + "H", 16))
        add_entry(entries, 259, 3, 1, struct.pack(bo + "H", 1))
        add_entry(entries, 262, 3, 1, struct.pack(bo + "H", 1))
        if description is not None:
            add_entry(entries, 270, 2, len(description), description)
        strip_fmt = "H" if strip_type == 3 else "I"
        add_entry(entries, 273, strip_type, len(offsets),
                  struct.pack(bo + strip_fmt * len(offsets), *offsets))
        add_entry(entries, 277, 3, 1, struct.pack(bo + "H", 1))
        add_entry(entries, 278, 4, 1,
                  struct.pack(bo + "I", declared_rows_per_strip))
        add_entry(entries, 279, strip_type, len(counts),
                  struct.pack(bo + strip_fmt * len(counts), *counts))
        for e in extra_entries:
            add_entry(entries, *e)
        entries.sort(key=lambda e: e[0])

        if len(out) % 2:
            out.append(0)
        out[next_pos:next_pos+4] = struct.pack(bo + "I", len(out))
        out.extend(struct.pack(bo + "H", len(entries)))
        for tag, typ, count, value in entries:
            out.extend(struct.pack(bo + "HHI", tag, typ, count) + value)
        next_pos = len(out)
        out.extend(struct.pack(bo + "I", 0))

    return bytes(out)


def gaussian_frame(shape=(64, 64), center=(31.3, 28.7), size=1.3, mass=500.,
                   bg=5.):
    """Image of a single integrated Gaussian PSF (in photons)"""
    y, x = np.indices(shape)
    params = [center[0], center[1], np.sqrt(size), np.sqrt(mass),
              np.sqrt(bg)]
    return fit.psf_model(x, y, params)


@pytest.fixture
def make_tiff():
    return build_tiff


@pytest.fixture
def blob_frame():
    return gaussian_frame()


@pytest.fixture
def restore_rc(monkeypatch):
    monkeypatch.setattr(config, "rc", dict(config.rc))
    monkeypatch.setattr(config, "columns", dict(config.columns))


@pytest.fixture
def make_frame():
    return gaussian_frame
