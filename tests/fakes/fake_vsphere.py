# SPDX-License-Identifier: GPL-2.0-or-later
"""
Doubles for pyVmomi managed objects and the session client.

MagicMock(spec=vim.X) passes isinstance checks against vim.X, which is all the
code under test relies on.
"""
import logging
from unittest.mock import MagicMock

from pyVmomi import vim

from mcm_vsphere.vmware.clients.client import VsphereClient


def make_task(state="success", result=None, error_msg=None):
    task = MagicMock(spec=vim.Task)
    task.info = MagicMock(state=state, result=result, error=MagicMock(msg=error_msg))
    return task


def make_vm(name="vm-1", uuid="4210aaaa-bbbb-cccc-dddd-eeeeffff0001", power_state="poweredOn", moid="vm-101"):
    vm = MagicMock(spec=vim.VirtualMachine)
    vm.name = name
    vm._moId = moid
    vm.config = MagicMock(uuid=uuid, guestId="otherLinux64Guest")
    vm.runtime = MagicMock(powerState=power_state)
    vm.PowerOffVM_Task = MagicMock(return_value=make_task())
    vm.PowerOnVM_Task = MagicMock(return_value=make_task())
    vm.Destroy_Task = MagicMock(return_value=make_task())
    vm.CloneVM_Task = MagicMock(return_value=make_task())
    return vm


def make_folder(name="vm", children=()):
    folder = MagicMock(spec=vim.Folder)
    folder.name = name
    folder.childEntity = list(children)
    return folder


def make_datacenter(name="dc1", vm_folder=None, network_folder=None):
    dc = MagicMock(spec=vim.Datacenter)
    dc.name = name
    dc.vmFolder = vm_folder if vm_folder is not None else make_folder("vm")
    dc.networkFolder = network_folder if network_folder is not None else make_folder("network")
    return dc


def make_field(key, name):
    f = MagicMock(spec=vim.CustomFieldsManager.FieldDef)
    f.key = key
    f.name = name
    f.managedObjectType = vim.VirtualMachine
    return f


def make_client(inventory=None, datacenters=None, by_uuid=None, container=None):
    """
    Session double.

    inventory:   {inventory path: object} served by FindByInventoryPath
    datacenters: objects served by a Datacenter container view
    by_uuid:     {uuid: vm} served by FindByUuid
    container:   {vim type: [objects]} for other container views
    """
    inventory = dict(inventory or {})
    by_uuid = dict(by_uuid or {})
    container = dict(container or {})
    if datacenters is not None:
        container[vim.Datacenter] = list(datacenters)

    client = MagicMock(spec=VsphereClient)
    client.logger = logging.getLogger("mcm_vsphere.test")

    index = MagicMock()
    index.FindByInventoryPath.side_effect = lambda inventoryPath: inventory.get(inventoryPath)
    index.FindByUuid.side_effect = lambda datacenter, uuid, vmSearch, instanceUuid: by_uuid.get(uuid)
    client.search_index.return_value = index

    content = MagicMock()
    content.searchIndex = index

    def _view(root, types, recursive):
        view = MagicMock()
        view.view = list(container.get(types[0], []))
        return view

    content.viewManager.CreateContainerView.side_effect = _view
    client.content.return_value = content

    client.wait_for_task.side_effect = lambda task: task.info.result
    return client
