# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/vmware/vmomi/lifecycle.py
"""
Find, power off, destroy and enumerate machines.

Every remote failure is wrapped with the step that failed; a machine that
does not exist surfaces as MachineNotFoundError so callers can treat it as
absent.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pyVmomi import vim

from ...apis.provider_spec import VsphereProviderSpec
from ...core.exceptions import MachineNotFoundError, VMwareError, wrap_vmware
from ...core.logger import Log
from ..clients.client import VsphereClient
from .search import InventorySearch, NotFoundError


@dataclass
class EntityInfo:
    """name, customValue and BIOS UUID of one VM, as returned by the property collector."""
    name: str
    custom_values: Dict[int, str] = field(default_factory=dict)
    uuid: str = ""  # empty when config is not readable

    def value_by_name(self, fields: List[Any], name: str) -> Optional[str]:
        for f in fields:
            if f.name == name:
                return self.custom_values.get(f.key)
        return None

    def values_by_name(self, fields: List[Any]) -> Dict[str, str]:
        names = {f.key: f.name for f in fields}
        return {names[k]: v for k, v in self.custom_values.items() if k in names}


VirtualMachineVisitor = Callable[[Any, EntityInfo, List[Any]], None]

VM_PROPERTIES = ["name", "customValue", "config.uuid"]


def find_vm(client: VsphereClient, spec: VsphereProviderSpec, machine_name: str, machine_id: str) -> Any:
    if machine_id:
        return find_by_uuid(client, spec, machine_id)
    return find_by_ipath(client, spec, machine_name)


def _resolve_datacenter(search: InventorySearch) -> None:
    try:
        search.datacenter()
    except Exception as e:
        raise wrap_vmware(f"resolving datacenter {search.spec.datacenter!r} failed", e) from e


def find_by_ipath(client: VsphereClient, spec: VsphereProviderSpec, machine_name: str) -> Any:
    search = InventorySearch(client, spec)
    _resolve_datacenter(search)
    ipath = search.datacenter_path(spec.vm_folder_path(), machine_name)
    try:
        return search.vm_by_inventory_path(ipath)
    except NotFoundError:
        raise MachineNotFoundError(name=machine_name)
    except Exception as e:
        raise wrap_vmware(f'find by inventory path "{ipath}" failed', e) from e


def find_by_uuid(client: VsphereClient, spec: VsphereProviderSpec, machine_id: str) -> Any:
    search = InventorySearch(client, spec)
    _resolve_datacenter(search)
    try:
        return search.vm_by_uuid(machine_id)
    except NotFoundError:
        raise MachineNotFoundError(machine_id=machine_id)
    except Exception as e:
        raise wrap_vmware(f"find by uuid {machine_id} failed", e) from e


def _vm_uuid(vm: Any) -> str:
    return str(vm.config.uuid)


def run_task(client: VsphereClient, start: Callable[[], Any], what: str) -> Any:
    try:
        task = start()
    except Exception as e:
        raise wrap_vmware(f"starting {what} failed", e) from e
    try:
        return client.wait_for_task(task)
    except Exception as e:
        raise wrap_vmware(f"{what} failed", e) from e


def _do_shutdown(client: VsphereClient, spec: VsphereProviderSpec, machine_name: str, machine_id: str) -> Any:
    vm = find_vm(client, spec, machine_name, machine_id)
    log = Log.bind(client.logger, machine=machine_name or machine_id)
    try:
        power_state = vm.runtime.powerState
    except Exception as e:
        raise wrap_vmware("PowerState failed", e) from e

    if power_state == vim.VirtualMachinePowerState.poweredOn:
        log.info("Powering off VM")
        run_task(client, vm.PowerOffVM_Task, "PowerOff")
    else:
        log.debug("VM already in power state %s", power_state)
    return vm


def shut_down_vm(client: VsphereClient, spec: VsphereProviderSpec, machine_name: str, machine_id: str) -> str:
    """Power off the machine if it is on. Returns its UUID."""
    vm = _do_shutdown(client, spec, machine_name, machine_id)
    return _vm_uuid(vm)


def delete_vm(client: VsphereClient, spec: VsphereProviderSpec, machine_name: str, machine_id: str) -> str:
    """Power off and destroy the machine. Returns the UUID it had."""
    vm = _do_shutdown(client, spec, machine_name, machine_id)
    found_machine_id = _vm_uuid(vm)

    client.logger.info("Destroying VM %s (uuid=%s)", machine_name or machine_id, found_machine_id)
    run_task(client, vm.Destroy_Task, "Destroy")
    return found_machine_id


def _direct_child_folder(parent: Any, name: str) -> Any:
    for child in parent.childEntity or []:
        if isinstance(child, vim.Folder) and child.name == name:
            return child
    return None


def visit_virtual_machines(client: VsphereClient, spec: VsphereProviderSpec, visitor: VirtualMachineVisitor) -> None:
    """
    Call visitor(vm, entity_info, custom_field_defs) for every VM directly in the
    `spec.folder` folder (or the datacenter VM root folder).
    """
    search = InventorySearch(client, spec)
    folder = search.datacenter().vmFolder
    if spec.folder:
        folder = _direct_child_folder(folder, spec.folder)
        if folder is None:
            raise VMwareError(msg=f"Folder {spec.folder} not found")

    vms = [child for child in (folder.childEntity or []) if isinstance(child, vim.VirtualMachine)]

    try:
        props = client.retrieve_properties(vms, vim.VirtualMachine, VM_PROPERTIES)
    except Exception as e:
        raise wrap_vmware("DefaultCollector failed", e) from e

    try:
        fields = client.custom_field_defs()
    except Exception as e:
        raise wrap_vmware("Field failed", e) from e

    for vm in vms:
        p = props.get(vm._moId, {})
        info = EntityInfo(
            name=str(p.get("name", "")),
            uuid=str(p.get("config.uuid") or ""),
            custom_values={cv.key: str(getattr(cv, "value", "")) for cv in (p.get("customValue") or [])},
        )
        try:
            visitor(vm, info, fields)
        except Exception as e:
            raise wrap_vmware(f"visiting vm {info.name} failed", e) from e
