# SPDX-License-Identifier: LGPL-3.0-or-later
# mcm_vsphere/core/__init__.py
from .exceptions import BootConfigError, Fatal, MachineNotFoundError, McmVsphereError, VMwareError
from .logger import Log

__all__ = ["BootConfigError", "Fatal", "MachineNotFoundError", "McmVsphereError", "VMwareError", "Log"]
