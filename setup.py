# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

from setuptools import setup, find_packages


setup(
    name="smlm",
    version="0.1.0",
    description="Single molecule localization by maximum likelihood PSF "
                "fitting",
    license="BSD-3-Clause",
    python_requires=">=3.9",
    install_requires=["numpy>=1.10",
                      "pandas",
                      "tables",
                      "scipy>0.18",
                      "tifffile>=2020.9.3",
                      "pyyaml",
                      "numba"],
    extras_require={"test": ["pytest"]},
    packages=find_packages(include=["smlm*"]),
)
