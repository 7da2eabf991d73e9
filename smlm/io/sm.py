# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Save and load single molecule localization data

Localization data are :py:class:`pandas.DataFrame` objects as returned by
:py:func:`smlm.loc.psf_mle.locate`. They can be stored as HDF5 (lossless, in
pixel units) or as CSV text. CSV files are written in physical units with
the unit appended to the column name (``"x [nm]"``) and 1-based frame
numbers, which is what most downstream tools expect.
"""
from pathlib import Path
import re

import pandas as pd

from .. import config


physical_columns = {"x": "nm", "y": "nm", "size": "nm", "mass": "photon",
                    "bg": "photon"}
"""Columns written to text files and their units"""

_unit_re = re.compile(r"^(\w+) \[(\w+)\]$")


@config.set_columns
@config.use_defaults
def to_physical(data, pixel_size=None, columns={}):
    """Convert localization data to physical units

    Coordinates and sizes are multiplied by the pixel size, frame numbers
    are made 1-based.

    Parameters
    ----------
    data : pandas.DataFrame
        Localization data in pixel units
    pixel_size : float or None, optional
        Size of a pixel in nm. If `None`, use ``config.rc["pixel_size"]``.

    Returns
    -------
    pandas.DataFrame
        Copy of the data in physical units

    Other parameters
    ----------------
    columns : dict, optional
        Override default column names as defined in
        :py:attr:`config.columns`. Relevant names are `coords`, `time`, and
        `size`.
    """
    ret = data.copy()
    length_cols = [c for c in list(columns["coords"]) + [columns["size"]]
                   if c in ret]
    ret[length_cols] *= pixel_size
    if columns["time"] in ret:
        ret[columns["time"]] += 1
    return ret


def _infer_format(path):
    if path.suffix == ".h5":
        return "hdf5"
    if path.suffix in (".csv", ".txt"):
        return "csv"
    raise ValueError(f"Could not determine format from file name {path}")


def save(filename, data, fmt="auto", pixel_size=None):
    """Save localization data

    Parameters
    ----------
    filename : str or pathlib.Path
        Name of the file to write to
    data : pandas.DataFrame
        Data to save (pixel units)
    fmt : {"auto", "hdf5", "csv"}, optional
        Output format. If "auto", infer the format from `filename` (".h5" for
        HDF5, ".csv" and ".txt" for CSV).
    pixel_size : float or None, optional
        Only used for CSV output. Size of a pixel in nm. If `None`, use
        ``config.rc["pixel_size"]``.
    """
    p = Path(filename)
    if fmt == "auto":
        fmt = _infer_format(p)

    if fmt == "hdf5":
        data.to_hdf(p, key="features")
    elif fmt == "csv":
        save_csv(p, data, pixel_size)
    else:
        raise ValueError('Unknown format "{}"'.format(fmt))


def save_csv(filename, data, pixel_size=None):
    """Write localization data to a CSV file in physical units

    Parameters
    ----------
    filename : str or pathlib.Path or file-like
        Where to write to
    data : pandas.DataFrame
        Data to save (pixel units)
    pixel_size : float or None, optional
        Size of a pixel in nm. If `None`, use ``config.rc["pixel_size"]``.
    """
    phys = to_physical(data, pixel_size)
    cols = [c for c in ["frame"] + list(physical_columns) if c in phys]
    phys = phys[cols]
    phys.columns = [f"{c} [{physical_columns[c]}]" if c in physical_columns
                    else c for c in cols]
    phys.to_csv(filename, index=False)


@config.use_defaults
def load_csv(filename, pixel_size=None):
    """Load localization data from a CSV file written by :py:func:`save_csv`

    Parameters
    ----------
    filename : str or pathlib.Path
        Name of the file to load
    pixel_size : float or None, optional
        Size of a pixel in nm, used to convert back to pixel units. If `None`,
        use ``config.rc["pixel_size"]``.

    Returns
    -------
    pandas.DataFrame
        Single molecule data in pixel units with 0-based frame numbers
    """
    df = pd.read_csv(filename)

    cols = []
    for c in df.columns:
        m = _unit_re.search(c)
        if m:
            cols.append(m.group(1))
            if m.group(2) == "nm":
                df[c] = df[c] / pixel_size
        else:
            cols.append(c)
    df.columns = cols

    if "frame" in df.columns:
        df["frame"] -= 1

    return df


def load(filename, fmt="auto", pixel_size=None):
    """Load localization data

    Parameters
    ----------
    filename : str or pathlib.Path
        Name of the file to load
    fmt : {"auto", "hdf5", "csv"}, optional
        Input format. If "auto", infer from `filename`.
    pixel_size : float or None, optional
        Only used for CSV input. Size of a pixel in nm. If `None`, use
        ``config.rc["pixel_size"]``.

    Returns
    -------
    pandas.DataFrame
        Localization data in pixel units
    """
    p = Path(filename)
    if fmt == "auto":
        fmt = _infer_format(p)

    if fmt == "hdf5":
        return pd.read_hdf(p, "features")
    if fmt == "csv":
        return load_csv(p, pixel_size)
    raise ValueError('Unknown format "{}"'.format(fmt))
