# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/vmware/vmomi/search.py
"""
Inventory lookups: datacenter resolution and VM search by inventory path or UUID.

These helpers never fall back from one lookup mode to the other and never
return more than one object.
"""
from __future__ import annotations

from typing import Any, List, Optional

from pyVmomi import vim

from ...apis.provider_spec import VsphereProviderSpec
from ...core.exceptions import VMwareError
from ..clients.client import VsphereClient


class NotFoundError(VMwareError):
    """An inventory lookup returned nothing."""
    pass


def _container_objects(client: VsphereClient, root: Any, vim_type: Any) -> List[Any]:
    content = client.content()
    view = content.viewManager.CreateContainerView(root, [vim_type], True)
    try:
        return list(view.view)
    finally:
        view.Destroy()


class InventorySearch:
    """
    Lookups scoped to the datacenter named in the provider spec.

    The datacenter object is resolved once per instance.
    """

    def __init__(self, client: VsphereClient, spec: VsphereProviderSpec) -> None:
        self.client = client
        self.spec = spec
        self.logger = client.logger
        self._dc: Any = None

    # Datacenter

    def datacenter(self) -> Any:
        if self._dc is None:
            self._dc = self._find_datacenter(self.spec.datacenter)
        return self._dc

    def datacenter_name(self) -> str:
        return str(self.datacenter().name)

    def _find_datacenter(self, name: str) -> Any:
        if name:
            obj = self.client.search_index().FindByInventoryPath(inventoryPath=f"/{name}")
            if obj is None or not isinstance(obj, vim.Datacenter):
                raise NotFoundError(msg=f"datacenter '{name}' not found")
            return obj

        dcs = _container_objects(self.client, self.client.content().rootFolder, vim.Datacenter)
        if not dcs:
            raise NotFoundError(msg="no datacenter found")
        if len(dcs) > 1:
            raise VMwareError(msg="default datacenter resolves to multiple instances, please specify")
        return dcs[0]

    # Generic inventory path

    def by_inventory_path(self, ipath: str) -> Any:
        """Object at `ipath` or None."""
        self.logger.debug("FindByInventoryPath %s", ipath)
        return self.client.search_index().FindByInventoryPath(inventoryPath=ipath)

    def datacenter_path(self, *parts: str) -> str:
        rel = "/".join(p.strip("/") for p in parts if p and p.strip("/"))
        return f"/{self.datacenter_name()}/{rel}" if rel else f"/{self.datacenter_name()}"

    def find_typed(self, ipath: str, vim_type: Any, what: str) -> Any:
        obj = self.by_inventory_path(ipath)
        if obj is None:
            raise NotFoundError(msg=f"{what} '{ipath}' not found")
        if not isinstance(obj, vim_type):
            raise VMwareError(msg=f"{what} '{ipath}' is a {type(obj).__name__}, not a {vim_type.__name__}")
        return obj

    # Virtual machines

    def vm_by_inventory_path(self, ipath: str) -> Any:
        obj = self.by_inventory_path(ipath)
        if obj is None:
            raise NotFoundError(msg=f"no such VM at {ipath}")
        if not isinstance(obj, vim.VirtualMachine):
            raise VMwareError(msg=f"expected VirtualMachine entity at {ipath}, got {type(obj).__name__}")
        return obj

    def vm_by_uuid(self, uuid: str) -> Any:
        self.logger.debug("FindByUuid %s", uuid)
        obj = self.client.search_index().FindByUuid(
            datacenter=self.datacenter(),
            uuid=uuid,
            vmSearch=True,
            instanceUuid=False,
        )
        if obj is None:
            raise NotFoundError(msg=f"no such VM with uuid {uuid}")
        return obj

    def vm_folder(self, folder: Optional[str] = None) -> Any:
        """Datacenter vmFolder, or the folder below it named by `folder` (may be a path)."""
        if not folder:
            return self.datacenter().vmFolder
        return self.find_typed(self.datacenter_path("vm", folder), vim.Folder, "folder")
