# SPDX-License-Identifier: LGPL-3.0-or-later
# mcm_vsphere/apis/__init__.py
from .provider_spec import VsphereProviderSpec, VsphereSecret, load_machine_inputs

__all__ = ["VsphereProviderSpec", "VsphereSecret", "load_machine_inputs"]
