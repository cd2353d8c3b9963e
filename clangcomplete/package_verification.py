#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Runtime dependency verification for clangComplete.

The CLI calls require_package() before doing any work so that an outdated
colorama fails with an install hint instead of a traceback. Minimum versions
follow Ubuntu 24.04 LTS.

CLI Interface:
    python3 -m clangcomplete.package_verification --check-all
"""

import sys
import logging
import argparse
from importlib.metadata import version, PackageNotFoundError
from typing import Tuple, Optional, Dict

from packaging.version import parse

from clangcomplete.color_utils import print_error, print_success
from clangcomplete.constants import EXIT_INVALID_ARGS, EXIT_RUNTIME_ERROR, EXIT_SUCCESS

logger = logging.getLogger(__name__)

# Minimum versions of the runtime dependencies declared in pyproject.toml
PACKAGE_REQUIREMENTS: Dict[str, str] = {
    "colorama": "0.4.6",
    "packaging": "24.0",
}


def _minimum_version(package_name: str, min_version: Optional[str]) -> str:
    if min_version is not None:
        return min_version
    registered = PACKAGE_REQUIREMENTS.get(package_name)
    if registered is None:
        raise ValueError(f"No version requirement specified for {package_name}")
    return registered


def check_package_version(package_name: str, min_version: Optional[str] = None, raise_on_error: bool = True) -> Tuple[bool, bool, Optional[str]]:
    """Look up the installed version of a distribution and compare it to a minimum.

    Args:
        package_name: Distribution name on PyPI
        min_version: Required minimum; defaults to the PACKAGE_REQUIREMENTS entry
        raise_on_error: Raise ImportError instead of returning a failed status

    Returns:
        (installed, satisfies minimum, installed version or None)

    Raises:
        ImportError: Missing or outdated package with raise_on_error set
        ValueError: No minimum given and none registered
    """
    required = _minimum_version(package_name, min_version)

    try:
        installed = version(package_name)
    except PackageNotFoundError as exc:
        if raise_on_error:
            raise ImportError(f"{package_name} is not installed (pip install '{package_name}>={required}')") from exc
        return False, False, None

    satisfied = parse(installed) >= parse(required)
    if not satisfied and raise_on_error:
        raise ImportError(f"{package_name} {installed} is too old, >={required} needed (pip install --upgrade '{package_name}>={required}')")

    logger.debug("%s %s (need >=%s)", package_name, installed, required)
    return True, satisfied, installed


def require_package(package_name: str, context: str) -> None:
    """Exit with EXIT_RUNTIME_ERROR when a registered package is missing or too old."""
    try:
        check_package_version(package_name)
    except (ImportError, ValueError) as e:
        print_error(f"{package_name} is required for {context}: {e}")
        sys.exit(EXIT_RUNTIME_ERROR)


def check_all_packages() -> bool:
    """Report every registered package on stderr; True when all are usable."""
    all_ok = True
    for pkg_name in PACKAGE_REQUIREMENTS:
        installed, satisfied, installed_ver = check_package_version(pkg_name, raise_on_error=False)
        if satisfied:
            print_success(f"{pkg_name} {installed_ver}")
            continue
        found = installed_ver if installed else "not installed"
        print_error(f"{pkg_name} {found} (need >={PACKAGE_REQUIREMENTS[pkg_name]})", prefix=False)
        all_ok = False
    return all_ok


def main() -> int:
    parser = argparse.ArgumentParser(description="Verify clangComplete package dependencies")
    parser.add_argument("--check-all", action="store_true", help="Check all registered runtime packages")
    args = parser.parse_args()

    if not args.check_all:
        parser.print_help()
        return EXIT_SUCCESS
    return EXIT_SUCCESS if check_all_packages() else EXIT_INVALID_ARGS


if __name__ == "__main__":
    sys.exit(main())
