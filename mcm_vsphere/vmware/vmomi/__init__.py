# SPDX-License-Identifier: LGPL-3.0-or-later
# mcm_vsphere/vmware/vmomi/__init__.py
"""
Machine operations expressed against pyVmomi managed objects.

- search: datacenter and VM lookup
- lifecycle: find, power off, destroy, custom-field visitor
- network: network resolution and NIC devices
- boot_config: ignition / cloud-init rendering
- create: clone from template
"""

from .boot_config import IgnitionConfig, ignition_file, prepare_user_data
from .create import create_vm
from .lifecycle import EntityInfo, delete_vm, find_vm, shut_down_vm, visit_virtual_machines
from .network import NetworkResolver

__all__ = [
    "EntityInfo",
    "IgnitionConfig",
    "NetworkResolver",
    "create_vm",
    "delete_vm",
    "find_vm",
    "ignition_file",
    "prepare_user_data",
    "shut_down_vm",
    "visit_virtual_machines",
]
