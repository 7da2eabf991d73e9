# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

r"""Optimization algorithms
=======================

Nelder-Mead simplex minimization
--------------------------------

:py:class:`NelderMead` minimizes scalar functions of any number of parameters
without requiring derivatives. It is used for maximum likelihood fitting of
PSF models in :py:mod:`smlm.loc.psf_mle`, but accepts any callable.


Examples
~~~~~~~~

>>> def f(x):
...     return np.sum((x - [1, 2])**2)
>>> res = optimize.minimize(f, [0, 0], [1, 1])
>>> res.x
array([0.99999..., 2.00000...])
>>> res.converged
True

Tolerances and the iteration limit can be changed:

>>> nm = optimize.NelderMead(value_tol=1e-8, position_tol=1e-8)
>>> res = nm.minimize(f, [0, 0], [1, 1])


Programming reference
---------------------

.. autoclass:: NelderMead
    :members:
.. autoclass:: NelderMeadResult
    :members:
.. autofunction:: minimize
"""
from .nelder_mead import (NelderMead, NelderMeadResult,  # noqa: F401
                          SimplexState, minimize)
