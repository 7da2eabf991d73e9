# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Collection of exception and warning classes"""
import enum


class ErrorKind(enum.Enum):
    """Kinds of errors that can occur while decoding image files"""
    FORMAT = "format"
    """File is not a (supported) TIFF container at all"""
    UNSUPPORTED_FORMAT = "unsupported format"
    """Valid container, but the pixel layout cannot be read"""
    SIZE_MISMATCH = "size mismatch"
    """Strip layout disagrees with the declared image geometry"""


class DecodeError(Exception):
    """Reading image data from a file failed

    Attributes
    ----------
    kind : ErrorKind
        What went wrong. Use this to discriminate between errors instead of
        parsing the message.
    """
    kind = None

    def __init__(self, text, kind=None):
        """Parameters
        ----------
        text : str
            What to display when converting the exception to a str
        kind : ErrorKind or None, optional
            Override the class' default :py:attr:`kind`.
        """
        super().__init__(text)
        if kind is not None:
            self.kind = kind


class FormatError(DecodeError):
    """Unrecognized byte order mark, check constant or directory entry type"""
    kind = ErrorKind.FORMAT


class UnsupportedFormatError(DecodeError):
    """Samples per pixel, bits per sample or compression not supported"""
    kind = ErrorKind.UNSUPPORTED_FORMAT


class SizeMismatchError(DecodeError):
    """Number of strips or bytes does not match the image geometry"""
    kind = ErrorKind.SIZE_MISMATCH


class MalformedStringWarning(UserWarning):
    """A string directory entry is not terminated by a NUL byte"""
