# SPDX-License-Identifier: LGPL-3.0-or-later
# mcm_vsphere/vmware/clients/__init__.py
"""
vSphere API client modules.

- client: VsphereClient session, task waiting and property retrieval
"""

__all__ = []
