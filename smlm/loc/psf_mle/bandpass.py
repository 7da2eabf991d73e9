# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Smoothing and band pass filtering for candidate detection

Both filters are separable binomial-like kernels. At image borders, kernel
taps falling outside of the image are dropped without renormalizing the
remaining weights, which makes smoothed values near the borders smaller.
"""
import collections
import logging

import numpy as np
from scipy import ndimage


_logger = logging.getLogger(__name__)

kernel = np.array([1., 4., 6., 4., 1.]) / 16
"""Smoothing kernel"""
wide_kernel = np.array([1., 0., 4., 0., 6., 0., 4., 0., 1.]) / 16
""":py:data:`kernel` dilated by one pixel"""

Preprocessed = collections.namedtuple(
    "Preprocessed", ["smoothed", "bandpass", "threshold"])


def separable_filter(image, k):
    """Correlate image with `k` along rows, then along columns

    Out-of-bounds pixels count as 0.

    Parameters
    ----------
    image : numpy.ndarray
        2D image data
    k : numpy.ndarray
        1D kernel of odd length

    Returns
    -------
    numpy.ndarray
        Filtered image (float)
    """
    image = np.asarray(image, dtype=float)
    tmp = ndimage.correlate1d(image, k, axis=1, mode="constant", cval=0.)
    return ndimage.correlate1d(tmp, k, axis=0, mode="constant", cval=0.)


def smooth(image):
    """Smooth using :py:data:`kernel`"""
    return separable_filter(image, kernel)


def smooth_wide(image):
    """Smooth using :py:data:`wide_kernel`"""
    return separable_filter(image, wide_kernel)


def noise_threshold(image, smoothed, factor=1.5):
    """Threshold for candidate detection

    Population standard deviation of ``image - smoothed`` times `factor`.

    Parameters
    ----------
    image, smoothed : numpy.ndarray
        Raw and smoothed image
    factor : float, optional
        Multiply the standard deviation by this. Defaults to 1.5.

    Returns
    -------
    float
        Threshold
    """
    resid = np.asarray(image, dtype=float) - smoothed
    mean = np.mean(resid)
    mean_sq = np.mean(resid * resid)
    # mean_sq - mean**2 can become slightly negative due to rounding
    return factor * np.sqrt(max(mean_sq - mean * mean, 0.))


def preprocess(image, threshold_factor=1.5):
    """Smooth, band pass filter, and compute the detection threshold

    Parameters
    ----------
    image : numpy.ndarray
        2D image data
    threshold_factor : float, optional
        Passed as the `factor` argument to :py:func:`noise_threshold`.
        Defaults to 1.5.

    Returns
    -------
    Preprocessed
        Smoothed image, band pass filtered image (difference of
        :py:func:`smooth` and :py:func:`smooth_wide` applied to the smoothed
        image), and threshold
    """
    smoothed = smooth(image)
    threshold = noise_threshold(image, smoothed, threshold_factor)
    _logger.debug("threshold = %s", threshold)
    bp = smoothed - smooth_wide(smoothed)
    return Preprocessed(smoothed, bp, threshold)
