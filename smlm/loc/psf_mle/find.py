# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Find candidates for fitting in a band pass filtered image

This module provides the :py:class:`Finder` class, which implements
local maximum detection and filtering.
"""
import numpy as np


class Finder(object):
    """Routines for finding local maxima in an image

    Local maxima are determined in a single pass through the image by
    comparing each pixel to its right, lower right, lower, and lower left
    neighbors. Whichever is lower is marked as not being a maximum; in case
    of a tie, the current pixel loses. Since marks are never revisited, this
    is an approximation of 8-neighborhood non-maximum suppression which
    depends on the scan order on plateaus.

    Attributes
    ----------
    fit_radius : int
        Maxima closer than this to the image edges are discarded so that the
        fitting window fits into the image.
    """
    def __init__(self, fit_radius=4):
        self.fit_radius = fit_radius

    def find(self, image, threshold):
        """Find local maxima above threshold

        Parameters
        ----------
        image : numpy.ndarray
            Band pass filtered image
        threshold : float
            Only accept maxima with values greater than this

        Returns
        -------
        numpy.ndarray, shape(n, 2)
            Coordinates of maxima, one per row. Columns are x and y. Rows are
            sorted in scan order (row-major).
        """
        is_max = self.local_maxima(image)

        r = self.fit_radius
        h, w = image.shape
        in_bounds = np.zeros_like(is_max)
        in_bounds[r:h-r, r:w-r] = True

        y, x = np.nonzero(is_max & in_bounds & (image > threshold))
        return np.column_stack([x, y])

    def local_maxima(self, image):
        """Single pass local maximum detection

        The actual finding function. Usually one would not call it directly,
        but use :py:meth:`find`. However, this can be overridden in a
        subclass.

        Parameters
        ----------
        image : numpy.ndarray
            2D image data

        Returns
        -------
        numpy.ndarray, dtype(bool)
            `True` where there is a maximum
        """
        w = image.shape[1]
        flat = np.asarray(image, dtype=float).ravel().tolist()
        is_max = [True] * len(flat)
        offsets = (1, w + 1, w, w - 1)

        for i in range(len(flat) - w - 1):
            for d in offsets:
                if flat[i] > flat[i + d]:
                    is_max[i + d] = False
                else:
                    is_max[i] = False

        return np.array(is_max, dtype=bool).reshape(image.shape)
