# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Maximum likelihood fitting of an integrated Gaussian PSF

The PSF is a 2D isotropic Gaussian integrated over each pixel plus a constant
background. Fit parameters are ``[x, y, sigma, amp, bg]`` (see
:py:data:`data.param_names`); the width, amplitude and background enter the
model as squares. This keeps them non-negative no matter where the
minimizer goes.
"""
import logging

import numpy as np
from scipy import special

from .data import Particle, param_nums
from ...optimize import NelderMead


_logger = logging.getLogger(__name__)

initial_sigma = 1.6
"""Initial guess for the PSF width (squared sigma parameter)"""
default_steps = np.array([1., 1., 0.2, 1., 1.])
"""Initial simplex size along each parameter axis"""
min_sigma = 0.5
"""Smallest plausible sigma parameter"""
max_amp = 1000.
"""Largest plausible absolute amp parameter"""


def psf_model(x, y, params):
    """Pixel integrated Gaussian PSF with background

    Parameters
    ----------
    x, y : numpy.ndarray or float
        Pixel coordinates
    params : array-like
        PSF parameters ``[x, y, sigma, amp, bg]``

    Returns
    -------
    numpy.ndarray or float
        Expected photon counts at the pixels
    """
    x0, y0, sig, amp, bg = params
    s = np.sqrt(2) * sig * sig
    ex = 0.5 * (special.erf((x - x0 + 0.5) / s) -
                special.erf((x - x0 - 0.5) / s))
    ey = 0.5 * (special.erf((y - y0 + 0.5) / s) -
                special.erf((y - y0 - 0.5) / s))
    return ex * ey * amp * amp + bg * bg


class Likelihood:
    """Negative Poisson log-likelihood of :py:func:`psf_model`

    Call an instance with a parameter array to compute
    ``-sum(data * log(psf) - psf)`` over the fitting window. Each instance
    owns its data and evaluation counter, so create a new one per fit.

    Attributes
    ----------
    data : numpy.ndarray
        Photon counts in the fitting window
    n_evals : int
        Number of calls so far
    """
    def __init__(self, data):
        self.data = np.asarray(data, dtype=float)
        self._y, self._x = np.indices(self.data.shape)
        self.n_evals = 0

    def __call__(self, params):
        self.n_evals += 1
        with np.errstate(divide="ignore", invalid="ignore"):
            psf = psf_model(self._x, self._y, params)
            ret = -np.sum(special.xlogy(self.data, psf) - psf)
        # zero width or zero intensity where photons were counted
        return ret if np.isfinite(ret) else np.inf


def initial_guess(window, fit_radius):
    """Initial fit parameters

    Parameters
    ----------
    window : numpy.ndarray
        Photon counts in the fitting window
    fit_radius : int
        Fitting window radius

    Returns
    -------
    numpy.ndarray
        Peak in the window center, width from :py:data:`initial_sigma`,
        amplitude and background from the window's range and minimum
    """
    mn = np.min(window)
    mx = np.max(window)
    return np.array([fit_radius, fit_radius, np.sqrt(initial_sigma),
                     np.sqrt(mx - mn), np.sqrt(mn)], dtype=float)


def is_plausible(params, fit_radius):
    """Check whether fit results make sense

    Parameters
    ----------
    params : array-like
        Fit parameters
    fit_radius : int
        Fitting window radius

    Returns
    -------
    bool
        `False` if the center is off by more than ``fit_radius // 2``, if
        sigma is not in ``[min_sigma, fit_radius // 2]``, or if the absolute
        amp parameter exceeds :py:data:`max_amp`. Note the integer division
        for odd `fit_radius`.
    """
    half = fit_radius // 2
    return bool(
        abs(params[param_nums.x] - fit_radius) <= half and
        abs(params[param_nums.y] - fit_radius) <= half and
        min_sigma <= params[param_nums.sigma] <= half and
        abs(params[param_nums.amp]) <= max_amp)


class Fitter(object):
    """Fit PSFs to candidates found in an image

    Attributes
    ----------
    image : numpy.ndarray
        Image data converted to photon counts
    fit_radius : int
        Fitting windows are ``2 * fit_radius + 1`` pixels wide and high.
    minimizer : optimize.NelderMead
        Used for minimization of the :py:class:`Likelihood`
    """
    def __init__(self, image, fit_radius=4, photon_factor=3.6,
                 minimizer=None):
        """Parameters
        ----------
        image : numpy.ndarray
            Raw image data
        fit_radius : int, optional
            Set :py:attr:`fit_radius`. Defaults to 4.
        photon_factor : float, optional
            Multiply raw image data by this to get photon counts. Defaults to
            3.6.
        minimizer : optimize.NelderMead or None, optional
            Set :py:attr:`minimizer`. If `None`, use one with default
            settings.
        """
        self.image = np.asarray(image, dtype=float) * photon_factor
        self.fit_radius = fit_radius
        self.minimizer = NelderMead() if minimizer is None else minimizer

    def crop(self, x, y):
        """Get the fitting window centered at (x, y)"""
        r = self.fit_radius
        return self.image[y-r:y+r+1, x-r:x+r+1]

    def fit(self, x, y, frame=0):
        """Fit the PSF model to a candidate

        Parameters
        ----------
        x, y : int
            Candidate pixel coordinates. Have to be at least
            :py:attr:`fit_radius` away from the image edges.
        frame : int, optional
            Frame number to store in the result. Defaults to 0.

        Returns
        -------
        data.Particle
            Fit result. Parameters are not checked for plausibility, use
            :py:func:`is_plausible` for that.
        """
        window = self.crop(x, y)
        lh = Likelihood(window)
        res = self.minimizer.minimize(
            lh, initial_guess(window, self.fit_radius), default_steps)
        return Particle(frame, x, y, tuple(float(p) for p in res.x),
                        lh.n_evals, res.n_iter)

    def fit_all(self, candidates, frame=0):
        """Fit all candidates and discard implausible results

        Parameters
        ----------
        candidates : iterable of (int, int)
            Candidate coordinates (x, y)
        frame : int, optional
            Frame number to store in the results. Defaults to 0.

        Returns
        -------
        list of data.Particle
            Plausible fit results in the order of `candidates`
        """
        ret = []
        for x, y in candidates:
            p = self.fit(int(x), int(y), frame)
            if is_plausible(p.params, self.fit_radius):
                ret.append(p)
            else:
                _logger.debug("Rejected fit at (%s, %s): %s", x, y, p.params)
        return ret
