# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Command line interface

Run ``python -m smlm.loc.psf_mle --help`` for usage information.
"""
import argparse
import logging
from pathlib import Path
import sys

from . import api
from ... import config, io
from ...exceptions import DecodeError


_logger = logging.getLogger(__name__)


def make_parser():
    """Create the argument parser"""
    parser = argparse.ArgumentParser(
        prog="python -m smlm.loc.psf_mle",
        description="Localize single emitters in a 16 bit TIFF stack by "
                    "maximum likelihood PSF fitting.")
    parser.add_argument("file", type=Path, help="TIFF file to process")
    parser.add_argument("-o", "--output", type=Path,
                        help="output file (.csv, .txt, or .h5). If not "
                             "given, write CSV to standard output.")
    parser.add_argument("--fit-radius", type=int,
                        help="fitting window radius in pixels")
    parser.add_argument("--photon-factor", type=float,
                        help="conversion factor from raw intensity to "
                             "photons")
    parser.add_argument("--threshold-factor", type=float,
                        help="detection threshold in units of noise "
                             "standard deviation")
    parser.add_argument("--pixel-size", type=float,
                        help="pixel size in nm for CSV output")
    parser.add_argument("--engine", choices=sorted(api.finders),
                        help="candidate finder implementation")
    parser.add_argument("--config", type=Path,
                        help="YAML file with default settings")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="print more messages, repeat for debug output")
    parser.add_argument("-q", "--quiet", action="count", default=0,
                        help="print fewer messages")
    return parser


def main(argv=None):
    """Run localization from the command line

    Parameters
    ----------
    argv : list of str or None, optional
        Command line arguments. If `None`, use :py:data:`sys.argv`.

    Returns
    -------
    int
        Exit status. 0 on success, 1 if the config file or the image file
        could not be processed.
    """
    parser = make_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=min(max(logging.WARNING + 10 * (args.quiet - args.verbose),
                      logging.DEBUG), logging.CRITICAL),
        format="%(levelname)s:%(name)s: %(message)s")

    if args.config is not None:
        try:
            config.load_rc(args.config)
        except (KeyError, OSError) as e:
            _logger.error("%s: %s", args.config, e)
            return 1
    if not args.file.is_file():
        parser.error(f"No such file: {args.file}")

    try:
        data = api.locate_file(args.file, args.fit_radius, args.photon_factor,
                               args.threshold_factor, args.engine)
    except DecodeError as e:
        _logger.error("%s: %s (%s)", args.file, e, e.kind.value)
        return 1
    except ValueError as e:
        # no frames in the file or invalid settings
        _logger.error("%s: %s", args.file, e)
        return 1
    _logger.info("%s: %s features in %s frames", args.file, len(data),
                 data["frame"].nunique())

    if args.output is None:
        io.save_csv(sys.stdout, data, args.pixel_size)
    else:
        io.save(args.output, data, pixel_size=args.pixel_size)
    return 0
