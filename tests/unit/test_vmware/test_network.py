# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tests for network resolution and NIC device construction."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from pyVmomi import vim

from fakes.fake_vsphere import make_client, make_datacenter
from mcm_vsphere.apis.provider_spec import VsphereProviderSpec
from mcm_vsphere.core.exceptions import VMwareError
from mcm_vsphere.vmware.vmomi.network import NetworkResolver, ethernet_card_backing


def _net(name, moid="network-1"):
    net = MagicMock(spec=vim.Network)
    net.name = name
    net._moId = moid
    return net


def _portgroup(name, key, switch_uuid, moid):
    pg = MagicMock(spec=vim.dvs.DistributedVirtualPortgroup)
    pg.name = name
    pg.key = key
    pg._moId = moid
    pg.config = MagicMock()
    pg.config.distributedVirtualSwitch.uuid = switch_uuid
    return pg


def _resolver(networks, network="VM Network", switch_uuid="", inventory=None, **kw):
    inv = {"/dc1": make_datacenter("dc1")}
    inv.update(inventory or {})
    client = make_client(inventory=inv, container={vim.Network: networks})
    spec = VsphereProviderSpec(datacenter="dc1", network=network, switch_uuid=switch_uuid)
    return client, NetworkResolver(client, spec, **kw)


@pytest.mark.unit
class TestFindNetwork:
    def test_single_match(self):
        net = _net("VM Network")
        _client, r = _resolver([net, _net("Storage", "network-2")])

        assert r.network() is net

    def test_shell_pattern(self):
        net = _net("k8s-workers")
        _client, r = _resolver([_net("mgmt"), net], network="k8s-*")

        assert r.network() is net

    def test_inventory_path_below_network_folder(self):
        net = _net("VM Network")
        _client, r = _resolver([], network="sub/VM Network", inventory={"/dc1/network/sub/VM Network": net})

        assert r.network() is net

    def test_result_is_cached(self):
        client, r = _resolver([_net("VM Network")])

        r.network()
        r.network()

        assert client.content.return_value.viewManager.CreateContainerView.call_count == 1

    def test_not_found(self):
        _client, r = _resolver([_net("other")])

        with pytest.raises(VMwareError) as ei:
            r.network()

        assert str(ei.value) == "network 'VM Network' not found"

    def test_multiple_without_switch_uuid(self):
        pgs = [_portgroup("pg", "dvportgroup-1", "sw-1", "pg-1"), _portgroup("pg", "dvportgroup-2", "sw-2", "pg-2")]
        _client, r = _resolver(pgs, network="pg")

        with pytest.raises(VMwareError) as ei:
            r.network()

        assert str(ei.value) == "path 'pg' resolves to multiple networks. Need switchUuid to select correct network"

    def test_multiple_selected_by_switch_uuid(self):
        pg2 = _portgroup("pg", "dvportgroup-2", "sw-2", "pg-2")
        _client, r = _resolver([_portgroup("pg", "dvportgroup-1", "sw-1", "pg-1"), pg2], network="pg", switch_uuid="sw-2")

        assert r.network() is pg2

    def test_multiple_with_unknown_switch_uuid_lists_found(self):
        pgs = [_portgroup("pg", "dvportgroup-1", "sw-1", "pg-1"), _portgroup("pg", "dvportgroup-2", "sw-2", "pg-2")]
        _client, r = _resolver(pgs, network="pg", switch_uuid="sw-9")

        with pytest.raises(VMwareError) as ei:
            r.network()

        msg = str(ei.value)
        assert msg.startswith("path 'pg' resolves to multiple networks. Found these switchUuids:")
        assert "sw-1" in msg and "sw-2" in msg


@pytest.mark.unit
class TestDevice:
    def test_default_adapter_on_standard_network(self):
        net = _net("VM Network")
        _client, r = _resolver([net])

        card = r.device()

        assert isinstance(card, vim.vm.device.VirtualE1000)
        assert card.key == -1
        assert isinstance(card.backing, vim.vm.device.VirtualEthernetCard.NetworkBackingInfo)
        assert card.backing.deviceName == "VM Network"
        assert card.backing.network is net
        assert card.connectable.startConnected is True
        assert card.connectable.allowGuestControl is True
        assert card.connectable.connected is True
        assert card.addressType == "generated"

    def test_adapter_and_manual_mac(self):
        _client, r = _resolver([_net("VM Network")], adapter="vmxnet3", mac_address="00:50:56:aa:bb:cc")

        card = r.device()

        assert isinstance(card, vim.vm.device.VirtualVmxnet3)
        assert card.addressType == "manual"
        assert card.macAddress == "00:50:56:aa:bb:cc"

    def test_unknown_adapter(self):
        _client, r = _resolver([_net("VM Network")], adapter="ne2000")

        with pytest.raises(VMwareError):
            r.device()

    def test_distributed_port_group_backing(self):
        pg = _portgroup("pg", "dvportgroup-7", "sw-1", "pg-7")

        backing = ethernet_card_backing(pg)

        assert isinstance(backing, vim.vm.device.VirtualEthernetCard.DistributedVirtualPortBackingInfo)
        assert backing.port.portgroupKey == "dvportgroup-7"
        assert backing.port.switchUuid == "sw-1"

    def test_change_copies_backing_and_address(self):
        _client, r = _resolver([_net("VM Network")], mac_address="00:50:56:00:00:01")
        existing = vim.vm.device.VirtualE1000(key=4000, addressType="generated", macAddress="00:50:56:ff:ff:ff")

        update = r.device()
        NetworkResolver.change(existing, update)

        assert existing.key == 4000
        assert existing.backing is update.backing
        assert existing.macAddress == "00:50:56:00:00:01"
        assert existing.addressType == "manual"

    def test_change_keeps_mac_when_update_has_none(self):
        _client, r = _resolver([_net("VM Network")])
        existing = vim.vm.device.VirtualE1000(key=4000, addressType="assigned", macAddress="00:50:56:ff:ff:ff")

        NetworkResolver.change(existing, r.device())

        assert existing.macAddress == "00:50:56:ff:ff:ff"
        assert existing.addressType == "generated"
