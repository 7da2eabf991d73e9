# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Mechanism for getting and setting default function parameters
=============================================================

Localization functions take a number of parameters (fitting window radius,
intensity to photon conversion factor, ...) which usually stay the same for
a given microscope setup. Instead of passing them to every call, they can be
set once in :py:attr:`rc`. Any function decorated with :py:func:`use_defaults`
will take its value from there whenever the corresponding argument is `None`.

Similarly, :py:func:`set_columns` provides default column names for
functions working on localization data :py:class:`pandas.DataFrame` objects.
Defaults are read from :py:attr:`columns`.

Settings for a setup can also be kept in a YAML file and loaded using
:py:func:`load_rc`.


Examples
--------

>>> @use_defaults
... def f(fit_radius=None):
...     return fit_radius
>>> f()
4
>>> f(3)
3
>>> rc["fit_radius"] = 5
>>> f()
5


Programming reference
---------------------

.. autofunction:: set_columns
.. autofunction:: use_defaults
.. autofunction:: load_rc
.. autodata:: columns
.. autodata:: rc
"""
import functools
import inspect
from pathlib import Path

import yaml


rc = dict(
    fit_radius=4,
    photon_factor=3.6,
    threshold_factor=1.5,
    pixel_size=80.,
    engine="numba")
"""Global config dictionary

- fit_radius: fitting window extends this many pixels from its center
- photon_factor: multiply raw pixel values by this to get photon counts
- threshold_factor: candidate threshold in units of the residual standard
  deviation after smoothing
- pixel_size: size of a pixel in nm, used when converting to physical units
- engine: implementation of the candidate finder, "numba" or "python"
"""


columns = dict(
    coords=["x", "y"],
    time="frame",
    size="size")
"""Default column names in :py:class:`pandas.DataFrame`"""


def use_defaults(func):
    """Decorator to apply default values to functions

    If any function argument whose name is a key in :py:attr:`rc` is `None`,
    set its value to what is specified in :py:attr:`rc`.

    Parameters
    ----------
    func : function
        Function to be decorated

    Returns
    -------
    function
        Modified function
    """
    sig = inspect.signature(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        ba = sig.bind(*args, **kwargs)
        ba.apply_defaults()
        for name, value in ba.arguments.items():
            if value is None:
                ba.arguments[name] = rc.get(name, None)
        return func(*ba.args, **ba.kwargs)

    wrapper.__signature__ = sig
    return wrapper


def set_columns(func):
    """Decorator to set default column names for DataFrames

    Use this on functions that accept a dict as the `columns` argument.
    Values from :py:attr:`columns` will be added for any key not present in
    the dict argument.

    Parameters
    ----------
    func : function
        Function to be decorated

    Returns
    -------
    function
        Modified function
    """
    sig = inspect.signature(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        ba = sig.bind(*args, **kwargs)
        ba.apply_defaults()

        cols = columns.copy()
        cols.update(ba.arguments["columns"])
        ba.arguments["columns"] = cols

        return func(*ba.args, **ba.kwargs)

    wrapper.__signature__ = sig
    return wrapper


def load_rc(filename):
    """Update :py:attr:`rc` from a YAML file

    The file has to contain a mapping. Only keys already present in
    :py:attr:`rc` are accepted.

    Parameters
    ----------
    filename : str or pathlib.Path
        YAML file to read

    Returns
    -------
    dict
        Values read from the file

    Raises
    ------
    KeyError
        The file contains an unknown key.
    """
    with Path(filename).open() as f:
        new = yaml.safe_load(f) or {}

    unknown = set(new) - set(rc)
    if unknown:
        raise KeyError("Unknown config keys: " + ", ".join(sorted(unknown)))
    rc.update(new)
    return new
