# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

"""Single molecule localization by maximum likelihood PSF fitting"""
__version__ = "0.1.0"
