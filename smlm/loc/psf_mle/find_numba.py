# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Find candidates for fitting in a band pass filtered image

This module provides a numba accelerated :py:class:`Finder` class.
"""
import numba
import numpy as np

from . import find


class Finder(find.Finder):
    """numba accelerated version of :py:class:`find.Finder`"""
    def local_maxima(self, image):
        """numba accelerated version of :py:meth:`find.Finder.local_maxima`.
        """
        flat = np.ascontiguousarray(image, dtype=float).ravel()
        is_max = np.ones(flat.size, dtype=np.bool_)
        _numba_local_maxima(flat, image.shape[1], is_max)
        return is_max.reshape(image.shape)


@numba.jit(nopython=True, nogil=True, cache=True)
def _numba_local_maxima(flat, width, is_max):
    """Actual finding using numba

    Parameters
    ----------
    flat : numpy.ndarray
        Flattened (row-major) image data
    width : int
        Image width
    is_max : numpy.ndarray
        Boolean array of the same size as `flat`, initialized to `True`.
        Entries are set to `False` where there is no maximum.
    """
    offsets = (1, width + 1, width, width - 1)
    for i in range(flat.size - width - 1):
        for d in offsets:
            if flat[i] > flat[i + d]:
                is_max[i + d] = False
            else:
                is_max[i] = False
