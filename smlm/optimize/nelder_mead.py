# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

import collections
from typing import Callable, Sequence

import numpy as np


SimplexState = collections.namedtuple("SimplexState", ["vertices", "values"])
SimplexState.__doc__ = """Vertices of a simplex and function values there

Attributes
----------
vertices : numpy.ndarray, shape(n + 1, n)
    One vertex per row
values : numpy.ndarray, shape(n + 1)
    Objective function value for each vertex
"""


class NelderMeadResult:
    """Result of a minimization using :py:class:`NelderMead`"""
    x: np.ndarray
    """Best vertex found"""
    fun: float
    """Objective function value at :py:attr:`x`"""
    n_iter: int
    """Number of iterations"""
    n_evals: int
    """Number of objective function evaluations"""
    converged: bool
    """Whether the tolerances were met. If `False`, the iteration limit was
    hit.
    """

    def __init__(self, x: np.ndarray, fun: float, n_iter: int, n_evals: int,
                 converged: bool):
        self.x = x
        self.fun = fun
        self.n_iter = n_iter
        self.n_evals = n_evals
        self.converged = converged

    def __repr__(self):
        return ("NelderMeadResult(x={}, fun={}, n_iter={}, n_evals={}, "
                "converged={})".format(self.x, self.fun, self.n_iter,
                                       self.n_evals, self.converged))


class NelderMead:
    """Derivative-free minimization using the Nelder-Mead simplex method

    Works for objective functions of any number of parameters. The objective
    function is passed to :py:meth:`minimize` as a callable taking a 1D
    array and returning a float, thus any closure or callable object can be
    used.

    Unlike the textbook version, if the contracted reflection is not better
    than the reflection itself, the reflection is accepted instead of
    shrinking the simplex.
    """
    reflection = 1.
    """Reflection coefficient"""
    expansion = 2.
    """Expansion coefficient"""
    contraction = 0.5
    """Contraction coefficient"""
    shrink = 0.5
    """Shrinking coefficient"""

    value_tol: float
    """Converged if objective function values of all vertices are closer
    than this
    """
    position_tol: float
    """Converged if the vertices' coordinates are closer than this along each
    axis
    """
    max_iter: int
    """Maximum number of iterations"""

    def __init__(self, value_tol: float = 1e-5, position_tol: float = 1e-5,
                 max_iter: int = 1000):
        """Parameters
        ----------
        value_tol
            Set :py:attr:`value_tol`
        position_tol
            Set :py:attr:`position_tol`
        max_iter
            Set :py:attr:`max_iter`
        """
        self.value_tol = value_tol
        self.position_tol = position_tol
        self.max_iter = max_iter

    @staticmethod
    def init_simplex(func: Callable[[np.ndarray], float], x0: Sequence[float],
                     steps: Sequence[float]) -> SimplexState:
        """Create the initial simplex

        The first vertex is `x0`, vertex ``i`` is `x0` with coordinate
        ``i - 1`` displaced by ``steps[i - 1]``.

        Parameters
        ----------
        func
            Objective function
        x0
            Starting point
        steps
            Displacement for each coordinate

        Returns
        -------
        Vertices and objective function values
        """
        x0 = np.asarray(x0, dtype=float)
        vertices = np.repeat(x0[np.newaxis, :], len(x0) + 1, axis=0)
        vertices[1:] += np.diag(np.asarray(steps, dtype=float))
        values = np.array([func(v) for v in vertices], dtype=float)
        return SimplexState(vertices, values)

    @staticmethod
    def rank(values: np.ndarray):
        """Find best, worst, and second worst vertex

        Ties are resolved in favor of the lower index.

        Parameters
        ----------
        values
            Objective function values of the vertices

        Returns
        -------
        best, worst, second_worst : int
            Vertex indices
        """
        best = 0
        worst = 0
        for i in range(1, len(values)):
            if values[i] < values[best]:
                best = i
            if values[i] > values[worst]:
                worst = i
        second_worst = 1 if worst == 0 else 0
        for i in range(len(values)):
            if i != worst and values[i] > values[second_worst]:
                second_worst = i
        return best, worst, second_worst

    def step(self, func: Callable[[np.ndarray], float], state: SimplexState):
        """Perform a single iteration

        The worst vertex is replaced by its reflection through the centroid
        of the others, an expansion, or a contraction. If none of those
        improves on the worst vertex, the simplex is shrunk towards the best
        one.

        Parameters
        ----------
        func
            Objective function
        state
            Current simplex. Modified in place.
        """
        s, y = state
        n = s.shape[1]
        best, worst, second = self.rank(y)

        # centroid of all but the worst vertex
        center = (np.sum(s, axis=0) - s[worst]) / n
        x_r = center + self.reflection * (center - s[worst])
        y_r = func(x_r)

        if y_r < y[best]:
            x_e = center + self.expansion * (center - s[worst])
            y_e = func(x_e)
            if y_e < y_r:
                s[worst], y[worst] = x_e, y_e
            else:
                s[worst], y[worst] = x_r, y_r
        elif y_r < y[second]:
            s[worst], y[worst] = x_r, y_r
        elif y_r < y[worst]:
            # contract towards the reflected point
            x_c = center + self.contraction * (x_r - center)
            y_c = func(x_c)
            if y_c < y_r:
                s[worst], y[worst] = x_c, y_c
            else:
                s[worst], y[worst] = x_r, y_r
        else:
            # contract towards the worst point
            x_c = center + self.contraction * (s[worst] - center)
            y_c = func(x_c)
            if y_c < y[worst]:
                s[worst], y[worst] = x_c, y_c
            else:
                for i in range(n + 1):
                    if i == best:
                        continue
                    s[i] = s[best] + self.shrink * (s[i] - s[best])
                    y[i] = func(s[i])

    def minimize(self, func: Callable[[np.ndarray], float],
                 x0: Sequence[float], steps: Sequence[float]
                 ) -> NelderMeadResult:
        """Minimize a function

        Parameters
        ----------
        func
            Objective function. Called with a 1D array of parameters, has to
            return a float.
        x0
            Starting point
        steps
            Initial simplex size along each axis

        Returns
        -------
        Best vertex found. This is also returned if :py:attr:`max_iter` was
        exceeded; check :py:attr:`NelderMeadResult.converged`.
        """
        n_evals = 0

        def f(x):
            nonlocal n_evals
            n_evals += 1
            return func(x)

        state = self.init_simplex(f, x0, steps)
        s, y = state
        converged = False

        n_iter = 0
        while n_iter < self.max_iter:
            best, worst, _ = self.rank(y)

            if y[worst] - y[best] < self.value_tol:
                # values are close enough, check coordinates
                if np.max(np.ptp(s, axis=0)) < self.position_tol:
                    converged = True
                    break

            self.step(f, state)
            n_iter += 1

        best = self.rank(y)[0]
        return NelderMeadResult(s[best].copy(), float(y[best]), n_iter,
                                n_evals, converged)


def minimize(func: Callable[[np.ndarray], float], x0: Sequence[float],
             steps: Sequence[float], value_tol: float = 1e-5,
             position_tol: float = 1e-5, max_iter: int = 1000
             ) -> NelderMeadResult:
    """Minimize a function using the Nelder-Mead simplex method

    Convenience wrapper around :py:meth:`NelderMead.minimize`.

    Parameters
    ----------
    func
        Objective function, called with a 1D array
    x0
        Starting point
    steps
        Initial simplex size along each axis
    value_tol, position_tol, max_iter
        See :py:class:`NelderMead`

    Returns
    -------
    Minimization result
    """
    return NelderMead(value_tol, position_tol, max_iter).minimize(
        func, x0, steps)
