# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Locate single emitters by maximum likelihood fitting of a pixel integrated
Gaussian PSF
"""
from .api import locate, batch, locate_file  # noqa: F401
