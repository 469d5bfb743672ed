# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/__init__.py
"""
mcm_vsphere - vSphere machine provider

Creates, finds, powers off and deletes virtual machines on vSphere on behalf
of a cluster machine-lifecycle controller.

Usage as a library:

    from mcm_vsphere import Driver, VsphereProviderSpec, VsphereSecret

    spec = VsphereProviderSpec.from_dict(provider_spec)
    secret = VsphereSecret.from_dict(secret_data)
    provider_id, node_name = Driver(logger).create_machine("worker-0", spec, secret)
"""

__version__ = "0.1.0"

from .apis import VsphereProviderSpec, VsphereSecret
from .driver import Driver, decode_provider_id, encode_provider_id
from .vmware import VsphereClient

__all__ = [
    "__version__",
    "Driver",
    "VsphereClient",
    "VsphereProviderSpec",
    "VsphereSecret",
    "decode_provider_id",
    "encode_provider_id",
]
