# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Put together preprocessing, finding, and fitting for feature localization
"""
import numpy as np

from . import bandpass
from .data import Candidate
from .fit import Fitter


def locate(raw_image, fit_radius, photon_factor, threshold_factor,
           finder_class, minimizer=None, frame_no=0):
    """Locate emitters in an image

    This is the actual implementation. Usually, one would not call this
    directly but the wrapper functions :py:func:`api.locate` and
    :py:func:`api.batch`

    Parameters
    ----------
    raw_image : array-like
        Raw image data
    fit_radius : int
        Fitting window radius
    photon_factor : float
        Multiply raw image data by this to get photon counts
    threshold_factor : float
        Candidate detection threshold in units of the noise standard
        deviation
    finder_class : class
        Implementation of a candidate finder. For an example, see
        :py:mod:`find`.
    minimizer : optimize.NelderMead or None, optional
        Minimizer to use for fitting. If `None`, use default settings.
    frame_no : int, optional
        Frame number to store in the results

    Returns
    -------
    list of data.Particle
        Plausible fit results in scan order of the candidates
    """
    image = np.asarray(raw_image, dtype=float)
    pre = bandpass.preprocess(image, threshold_factor)

    finder = finder_class(fit_radius)
    candidates = [Candidate(int(x), int(y))
                  for x, y in finder.find(pre.bandpass, pre.threshold)]

    fitter = Fitter(image, fit_radius, photon_factor, minimizer)
    return fitter.fit_all(candidates, frame_no)
