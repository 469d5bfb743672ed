# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/vmware/vmomi/create.py
"""
Clone a machine from the provider spec template.

Sequence: resolve placement, build the clone spec (hardware, NIC, root disk,
boot config), clone, tag with custom fields, power on.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pyVmomi import vim

from ...apis.provider_spec import VsphereProviderSpec
from ...core.exceptions import MachineNotFoundError, VMwareError, wrap_vmware
from ...core.logger import Log
from ..clients.client import VsphereClient
from .boot_config import boot_config_options
from .lifecycle import find_by_ipath, run_task
from .network import ETHERNET_CARD_TYPES, NetworkResolver
from .search import InventorySearch, NotFoundError

_KIB_PER_GIB = 1024 * 1024


def _template(search: InventorySearch, spec: VsphereProviderSpec) -> Any:
    ipath = search.datacenter_path("vm", spec.template_vm)
    try:
        return search.vm_by_inventory_path(ipath)
    except NotFoundError:
        raise VMwareError(code=11, msg=f"template VM '{spec.template_vm}' not found")


def _placement(search: InventorySearch, spec: VsphereProviderSpec) -> Tuple[Any, Optional[Any]]:
    """(resource pool, host) for the clone; host is None unless hostSystem is set."""
    if spec.resource_pool:
        pool = search.find_typed(search.datacenter_path("host", spec.resource_pool), vim.ResourcePool, "resource pool")
        return pool, None
    if spec.compute_cluster:
        cluster = search.find_typed(
            search.datacenter_path("host", spec.compute_cluster), vim.ClusterComputeResource, "compute cluster"
        )
        return cluster.resourcePool, None
    if spec.host_system:
        host = search.find_typed(search.datacenter_path("host", spec.host_system), vim.HostSystem, "host")
        return host.parent.resourcePool, host
    raise VMwareError(msg="no placement (computeCluster, resourcePool or hostSystem) given")


def _datastore(search: InventorySearch, spec: VsphereProviderSpec) -> Optional[Any]:
    if not spec.datastore:
        return None
    return search.find_typed(search.datacenter_path("datastore", spec.datastore), vim.Datastore, "datastore")


def _nic_changes(template: Any, resolver: NetworkResolver) -> List[Any]:
    """
    Point the template NIC at the resolved network.

    A first card of the requested adapter type is edited in place; every other
    card is removed and a new one added when nothing could be edited.
    """
    wanted = resolver.device()
    cards = [d for d in template.config.hardware.device if isinstance(d, vim.vm.device.VirtualEthernetCard)]
    changes: List[Any] = []
    edited = False
    for card in cards:
        if not edited and type(card) is ETHERNET_CARD_TYPES[resolver.adapter]:
            NetworkResolver.change(card, wanted)
            card.connectable = wanted.connectable
            changes.append(
                vim.vm.device.VirtualDeviceSpec(operation=vim.vm.device.VirtualDeviceSpec.Operation.edit, device=card)
            )
            edited = True
            continue
        changes.append(
            vim.vm.device.VirtualDeviceSpec(operation=vim.vm.device.VirtualDeviceSpec.Operation.remove, device=card)
        )
    if not edited:
        changes.append(
            vim.vm.device.VirtualDeviceSpec(operation=vim.vm.device.VirtualDeviceSpec.Operation.add, device=wanted)
        )
    return changes


def _disk_change(template: Any, size_gib: int) -> Optional[Any]:
    """Grow the first template disk to `size_gib`; None when no change is needed."""
    if size_gib <= 0:
        return None
    disks = [d for d in template.config.hardware.device if isinstance(d, vim.vm.device.VirtualDisk)]
    if not disks:
        raise VMwareError(msg="template has no disk to resize")
    disk = disks[0]
    want_kb = size_gib * _KIB_PER_GIB
    if want_kb == disk.capacityInKB:
        return None
    if want_kb < disk.capacityInKB:
        raise VMwareError(
            msg=f"systemDisk.size {size_gib}GiB is smaller than the template disk ({disk.capacityInKB // _KIB_PER_GIB}GiB)"
        )
    disk.capacityInKB = want_kb
    disk.capacityInBytes = want_kb * 1024
    return vim.vm.device.VirtualDeviceSpec(operation=vim.vm.device.VirtualDeviceSpec.Operation.edit, device=disk)


def _option_values(values: Dict[str, str]) -> List[Any]:
    return [vim.option.OptionValue(key=k, value=v) for k, v in values.items()]


def set_custom_fields(client: VsphereClient, vm: Any, values: Dict[str, str]) -> None:
    """Set custom field values on `vm`, defining missing fields first."""
    mgr = client.content().customFieldsManager
    for name, value in values.items():
        try:
            fdef = client.ensure_vm_custom_field(name)
            mgr.SetField(entity=vm, key=fdef.key, value=value)
        except Exception as e:
            raise wrap_vmware(f"setting custom field {name} failed", e) from e


def build_clone_spec(
    client: VsphereClient,
    spec: VsphereProviderSpec,
    search: InventorySearch,
    template: Any,
    machine_name: str,
    user_data: str,
) -> Any:
    pool, host = _placement(search, spec)
    location = vim.vm.RelocateSpec(pool=pool)
    if host is not None:
        location.host = host
    datastore = _datastore(search, spec)
    if datastore is not None:
        location.datastore = datastore

    config = vim.vm.ConfigSpec()
    config.numCPUs = spec.num_cpus
    config.memoryMB = spec.memory
    config.flags = vim.vm.FlagInfo(diskUuidEnabled=True)
    if spec.guest_id:
        config.guestId = spec.guest_id

    changes = _nic_changes(template, NetworkResolver(client, spec, search=search))
    disk = _disk_change(template, spec.system_disk_size)
    if disk is not None:
        changes.append(disk)
    config.deviceChange = changes

    extra = dict(spec.extra_config)
    extra.update(boot_config_options(spec, machine_name, user_data, str(template.config.guestId or "")))
    config.extraConfig = _option_values(extra)

    return vim.vm.CloneSpec(location=location, config=config, powerOn=False, template=False)


def _tag_and_power_on(client: VsphereClient, spec: VsphereProviderSpec, vm: Any, log: Any) -> None:
    if spec.tags:
        log.debug("Setting %d custom fields", len(spec.tags))
        set_custom_fields(client, vm, spec.tags)

    if vm.runtime.powerState == vim.VirtualMachinePowerState.poweredOn:
        log.debug("VM already powered on")
        return
    log.info("Powering on VM")
    run_task(client, vm.PowerOnVM_Task, "PowerOn")


def create_vm(client: VsphereClient, spec: VsphereProviderSpec, machine_name: str, user_data: str) -> str:
    """
    Clone, tag and power on `machine_name`. Returns the BIOS UUID.

    An existing machine is not cloned again, but still gets its tags and is
    powered on, so a retry completes a create that failed after the clone.
    """
    log = Log.bind(client.logger, machine=machine_name)
    try:
        existing = find_by_ipath(client, spec, machine_name)
    except MachineNotFoundError:
        existing = None
    if existing is not None:
        uuid = str(existing.config.uuid)
        log.info("VM already exists (uuid=%s)", uuid)
        _tag_and_power_on(client, spec, existing, log)
        return uuid

    search = InventorySearch(client, spec)
    template = _template(search, spec)
    folder = search.vm_folder(spec.folder)
    clone_spec = build_clone_spec(client, spec, search, template, machine_name, user_data)

    log.info("Cloning %s into %s", spec.template_vm, search.datacenter_path(spec.vm_folder_path()))
    vm = run_task(
        client,
        lambda: template.CloneVM_Task(folder=folder, name=machine_name, spec=clone_spec),
        "Clone",
    )
    if vm is None:
        vm = find_by_ipath(client, spec, machine_name)

    _tag_and_power_on(client, spec, vm, log)
    uuid = str(vm.config.uuid)
    log.info("VM created (uuid=%s)", uuid)
    return uuid
