# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/vmware/vmomi/network.py
"""
Resolve the provider spec network into a NIC device for VM configuration.
"""
from __future__ import annotations

import fnmatch
from typing import Any, Dict, List, Optional

from pyVmomi import vim

from ...apis.provider_spec import VsphereProviderSpec
from ...core.exceptions import VMwareError
from ..clients.client import VsphereClient
from .search import InventorySearch, _container_objects

DEFAULT_ADAPTER = "e1000"

ETHERNET_CARD_TYPES: Dict[str, Any] = {
    "e1000": vim.vm.device.VirtualE1000,
    "e1000e": vim.vm.device.VirtualE1000e,
    "pcnet32": vim.vm.device.VirtualPCNet32,
    "vmxnet2": vim.vm.device.VirtualVmxnet2,
    "vmxnet3": vim.vm.device.VirtualVmxnet3,
    "sriov": vim.vm.device.VirtualSriovEthernetCard,
}


def ethernet_card_backing(net: Any) -> Any:
    """Backing info for a NIC attached to `net` (standard, distributed or opaque network)."""
    if isinstance(net, vim.dvs.DistributedVirtualPortgroup):
        port = vim.dvs.PortConnection(
            portgroupKey=net.key,
            switchUuid=net.config.distributedVirtualSwitch.uuid,
        )
        return vim.vm.device.VirtualEthernetCard.DistributedVirtualPortBackingInfo(port=port)
    if isinstance(net, vim.OpaqueNetwork):
        return vim.vm.device.VirtualEthernetCard.OpaqueNetworkBackingInfo(
            opaqueNetworkId=net.summary.opaqueNetworkId,
            opaqueNetworkType=net.summary.opaqueNetworkType,
        )
    return vim.vm.device.VirtualEthernetCard.NetworkBackingInfo(deviceName=net.name, network=net)


class NetworkResolver:
    """
    Network named by spec.network, disambiguated by spec.switch_uuid when the
    name matches several port groups.
    """

    def __init__(
        self,
        client: VsphereClient,
        spec: VsphereProviderSpec,
        *,
        adapter: str = DEFAULT_ADAPTER,
        mac_address: Optional[str] = None,
        search: Optional[InventorySearch] = None,
    ) -> None:
        self.client = client
        self.name = spec.network
        self.switch_uuid = spec.switch_uuid
        self.adapter = adapter or DEFAULT_ADAPTER
        self.mac_address = mac_address
        self.search = search or InventorySearch(client, spec)
        self._net: Any = None

    def network(self) -> Any:
        if self._net is None:
            self._net = self._find_network(self.name)
        return self._net

    def _network_list(self, name: str) -> List[Any]:
        if "/" in name:
            obj = self.search.by_inventory_path(self.search.datacenter_path("network", name))
            return [obj] if isinstance(obj, vim.Network) else []
        root = self.search.datacenter().networkFolder
        return [n for n in _container_objects(self.client, root, vim.Network) if fnmatch.fnmatchcase(n.name, name)]

    def _find_network(self, name: str) -> Any:
        networks = self._network_list(name)
        if not networks:
            raise VMwareError(msg=f"network '{name}' not found")
        if len(networks) == 1:
            return networks[0]

        if not self.switch_uuid:
            raise VMwareError(
                msg=f"path '{name}' resolves to multiple networks. Need switchUuid to select correct network"
            )

        found: Dict[str, str] = {}
        for net in networks:
            backing = ethernet_card_backing(net)
            if isinstance(backing, vim.vm.device.VirtualEthernetCard.DistributedVirtualPortBackingInfo):
                found[net._moId] = backing.port.switchUuid
                if backing.port.switchUuid == self.switch_uuid:
                    return net
        raise VMwareError(msg=f"path '{name}' resolves to multiple networks. Found these switchUuids: '{found}'")

    def device(self) -> Any:
        """New ethernet card (device key -1) backed by the resolved network."""
        card_type = ETHERNET_CARD_TYPES.get(self.adapter)
        if card_type is None:
            raise VMwareError(msg=f"unknown ethernet card type '{self.adapter}'")

        card = card_type()
        card.key = -1
        card.backing = ethernet_card_backing(self.network())
        card.connectable = vim.vm.device.VirtualDevice.ConnectInfo(
            startConnected=True,
            allowGuestControl=True,
            connected=True,
        )
        if self.mac_address:
            card.addressType = "manual"
            card.macAddress = self.mac_address
        else:
            card.addressType = "generated"
        return card

    @staticmethod
    def change(device: Any, update: Any) -> None:
        """Copy backing and hardware address changes from `update` onto `device`."""
        device.backing = update.backing
        if update.macAddress:
            device.macAddress = update.macAddress
        if update.addressType:
            device.addressType = update.addressType
