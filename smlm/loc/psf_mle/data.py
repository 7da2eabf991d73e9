# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Records passed between the stages of the localization pipeline"""
import collections


param_names = ["x", "y", "sigma", "amp", "bg"]
"""Fit parameters. `x` and `y` are relative to the fitting window's corner.
`sigma`, `amp`, and `bg` are square roots of the PSF width, amplitude
(photons), and background (photons per pixel), respectively.
"""
ParamNums = collections.namedtuple("ParamNums", param_names)
param_nums = ParamNums(**{k: v for v, k in enumerate(param_names)})


Candidate = collections.namedtuple("Candidate", ["x", "y"])
Candidate.__doc__ = """Pixel found by the candidate detector"""

Particle = collections.namedtuple(
    "Particle", ["frame", "x", "y", "params", "n_evals", "n_iter"])
Particle.__doc__ = """A localized emitter

Attributes
----------
frame : int
    Frame number
x, y : int
    Pixel coordinates of the detected candidate (center of the fitting
    window)
params : tuple of float
    Fitted parameters, see :py:data:`param_names`
n_evals : int
    Number of likelihood function evaluations
n_iter : int
    Number of minimizer iterations
"""
