# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/vmware/__init__.py
"""vSphere side of the machine provider: session client and vmomi operations."""

from .clients.client import VsphereClient

__all__ = ["VsphereClient"]
