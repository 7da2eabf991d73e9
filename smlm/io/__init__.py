# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

r"""Data input/output
=================

:py:mod:`smlm.io` reads image stacks and saves and loads localization data.

- Multi-page TIFF files with 16 bit, single channel, uncompressed images
  (as written by most scientific cameras) are decoded by
  :py:class:`TiffDecoder`. :py:func:`read_frames` reads a whole file.
- Image sequences can be saved as multi-page TIFF files with help of
  :py:func:`save_as_tiff`, including metadata.
- Localization data can be written to HDF5 or CSV files using
  :py:func:`save` and read back with :py:func:`load`. CSV files use physical
  units (see :py:func:`to_physical`).


Examples
--------

Iterate over the frames of a TIFF file:

>>> with TiffDecoder("images.tif") as dec:
...     for frame in dec.iter_frames():
...         print(frame.shape, dec.metadata.software)
(64, 64) Andor
(64, 64) Andor

Save localization data as CSV:

>>> save("features.csv", data, pixel_size=160.)


Programming reference
---------------------

.. autoclass:: TiffDecoder
    :members:
.. autoclass:: FrameMetadata
.. autofunction:: read_frames
.. autofunction:: save_as_tiff
.. autofunction:: save
.. autofunction:: load
.. autofunction:: to_physical
"""
from .tiff import (TiffDecoder, FrameMetadata, DirectoryEntry, Tag,  # noqa: F401
                   read_frames, save_as_tiff)
from .sm import load, save, load_csv, save_csv, to_physical  # noqa: F401
