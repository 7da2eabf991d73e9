# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Fluorescent feature localization
================================

:py:mod:`smlm.loc.psf_mle` locates single emitters with subpixel accuracy.
Candidates are found as local maxima of a band pass filtered image; a pixel
integrated Gaussian PSF is then fitted to each candidate by maximizing the
Poisson likelihood with the Nelder-Mead simplex algorithm.

The API is modeled after
`trackpy <https://github.com/soft-matter/trackpy>`_'s. There is a ``locate``
function for locating features in a single image, a ``batch`` function for
locating all features in a series of images, and ``locate_file`` for
processing a TIFF file frame by frame.


Examples
--------

Localize features in an image:

>>> psf_mle.locate(img)
           x          y      size        mass        bg  x_det  y_det  n_evals  n_iter
0  31.300001  28.699999  1.300000  500.000032  5.000000     31     29      452     278

Localize features in a whole sequence:

>>> psf_mle.batch([img, img])
           x          y      size        mass        bg  x_det  y_det  n_evals  n_iter  frame
0  31.300001  28.699999  1.300000  500.000032  5.000000     31     29      452     278      0
1  31.300001  28.699999  1.300000  500.000032  5.000000     31     29      452     278      1

Localize features in a file:

>>> psf_mle.locate_file("images.tif")


psf_mle
-------

.. py:module:: smlm.loc.psf_mle
.. autofunction:: locate
.. autofunction:: batch
.. autofunction:: locate_file
"""
from . import psf_mle  # noqa: F401
