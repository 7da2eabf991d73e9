# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""API for the PSF maximum likelihood localization algorithm

Provides the standard :py:func:`locate` and :py:func:`batch` functions as well
as :py:func:`locate_file` for processing TIFF files frame by frame.
"""
import contextlib

import numpy as np
import pandas as pd

from . import algorithm, find, find_numba
from .data import param_nums
from .. import make_batch
from ... import config
from ...io import TiffDecoder


columns = ["x", "y", "size", "mass", "bg", "x_det", "y_det", "n_evals",
           "n_iter"]
"""Columns of DataFrames returned by :py:func:`locate`"""

finders = {"numba": find_numba.Finder, "python": find.Finder}


def to_dataframe(particles, fit_radius):
    """Convert fit results to a DataFrame

    Parameters
    ----------
    particles : list of data.Particle
        Fit results
    fit_radius : int
        Fitting window radius used for fitting

    Returns
    -------
    pandas.DataFrame
        Columns are given by :py:data:`columns`. x and y are image
        coordinates, size, mass, and bg are the squares of the fitted sigma,
        amp, and bg parameters.
    """
    det = np.array([[p.x, p.y] for p in particles], dtype=int).reshape(-1, 2)
    params = np.array([p.params for p in particles],
                      dtype=float).reshape(-1, len(param_nums))
    df = pd.DataFrame({
        "x": det[:, 0] - fit_radius + params[:, param_nums.x],
        "y": det[:, 1] - fit_radius + params[:, param_nums.y],
        "size": params[:, param_nums.sigma]**2,
        "mass": params[:, param_nums.amp]**2,
        "bg": params[:, param_nums.bg]**2,
        "x_det": det[:, 0],
        "y_det": det[:, 1],
        "n_evals": np.array([p.n_evals for p in particles], dtype=int),
        "n_iter": np.array([p.n_iter for p in particles], dtype=int)},
        columns=columns)
    return df


@config.use_defaults
def locate(raw_image, fit_radius=None, photon_factor=None,
           threshold_factor=None, engine=None):
    """Locate single emitters in an image

    Candidates are local maxima of a band pass filtered image. For each
    candidate, a pixel integrated Gaussian is fitted by maximizing the
    Poisson likelihood using the Nelder-Mead algorithm. Implausible results
    are discarded.

    Parameters
    ----------
    raw_image : array-like
        Raw image data
    fit_radius : int or None, optional
        Fitting windows are ``2 * fit_radius + 1`` pixels wide. Candidates
        closer than this to the edges are ignored. If `None`, use
        ``config.rc["fit_radius"]``.
    photon_factor : float or None, optional
        Multiply raw image data by this to get photon counts. If `None`,
        use ``config.rc["photon_factor"]``.
    threshold_factor : float or None, optional
        Candidate detection threshold in units of the noise standard
        deviation. If `None`, use ``config.rc["threshold_factor"]``.

    Returns
    -------
    DataFrame([x, y, size, mass, bg, x_det, y_det, n_evals, n_iter])
        x and y are the coordinates of the features, size is the PSF sigma,
        mass the total number of photons, and bg the background per pixel
        (in photons). x_det and y_det are the pixel where the feature was
        detected, n_evals and n_iter the number of likelihood evaluations
        and minimizer iterations. If `raw_image` has a `frame_no`
        attribute, a `frame` column with this information will also be
        appended.

    Other parameters
    ----------------
    engine : {"python", "numba"} or None, optional
        Which engine to use for candidate detection. "numba" is much faster
        than "python". If `None`, use ``config.rc["engine"]``.
    """
    try:
        finder_class = finders[engine]
    except KeyError:
        raise ValueError("Unknown engine: " + str(engine))

    frame_no = getattr(raw_image, "frame_no", None)
    if frame_no is None:
        with contextlib.suppress(AttributeError, KeyError):
            # for frames with metadata dicts
            frame_no = raw_image.meta["frame_no"]

    particles = algorithm.locate(raw_image, fit_radius, photon_factor,
                                 threshold_factor, finder_class,
                                 frame_no=frame_no or 0)
    df = to_dataframe(particles, fit_radius)
    if frame_no is not None:
        df["frame"] = frame_no
    return df


batch = make_batch.make_batch(locate)


@config.use_defaults
def locate_file(filename, fit_radius=None, photon_factor=None,
                threshold_factor=None, engine=None):
    """Locate single emitters in all frames of a TIFF file

    Frames are decoded and processed one after another. If a frame cannot be
    decoded, an exception is raised and no data is returned.

    Parameters
    ----------
    filename : str or pathlib.Path
        TIFF file
    fit_radius, photon_factor, threshold_factor, engine
        See :py:func:`locate`.

    Returns
    -------
    pandas.DataFrame
        Concatenation of :py:func:`locate` results with an additional "frame"
        column.

    Raises
    ------
    exceptions.DecodeError
        The file could not be decoded.
    """
    with TiffDecoder(filename) as dec:
        return batch(dec.iter_frames(), fit_radius, photon_factor,
                     threshold_factor, engine)
