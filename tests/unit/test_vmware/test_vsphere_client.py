# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tests for the vSphere session client primitives."""
from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest
from pyVmomi import vim

from fakes.fake_vsphere import make_field, make_task, make_vm
from mcm_vsphere.core.creds import VsphereCreds
from mcm_vsphere.core.exceptions import VMwareError
from mcm_vsphere.vmware.clients.client import VsphereClient

LOG = logging.getLogger("mcm_vsphere.test")


def _connected_client(content=None, **kw):
    client = VsphereClient(LOG, "vc.example.com", "admin", "secret", **kw)
    client.si = MagicMock()
    client.si.RetrieveContent.return_value = content if content is not None else MagicMock()
    return client


@pytest.mark.unit
class TestSession:
    def test_from_creds(self):
        creds = VsphereCreds(host="vc", user="u", password="p", insecure=True, port=8443)

        client = VsphereClient.from_creds(LOG, creds, task_timeout=30)

        assert (client.host, client.user, client.port, client.insecure) == ("vc", "u", 8443, True)
        assert client.task_timeout == 30

    @patch("mcm_vsphere.vmware.clients.client.Disconnect")
    @patch("mcm_vsphere.vmware.clients.client.SmartConnect")
    def test_context_manager_connects_and_disconnects(self, smart_connect, disconnect):
        si = MagicMock()
        smart_connect.return_value = si

        with VsphereClient(LOG, "vc", "u", "p", insecure=True) as client:
            assert client.si is si

        kwargs = smart_connect.call_args.kwargs
        assert kwargs["host"] == "vc"
        assert kwargs["pwd"] == "p"
        disconnect.assert_called_once_with(si)
        assert client.si is None

    @patch("mcm_vsphere.vmware.clients.client.SmartConnect")
    def test_connect_failure_is_network_coded(self, smart_connect):
        smart_connect.side_effect = OSError("connection refused")

        with pytest.raises(VMwareError) as ei:
            VsphereClient(LOG, "vc", "u", "p").connect()

        assert ei.value.code == 12
        assert "Failed to connect to vSphere vc:443" in str(ei.value)

    def test_content_requires_connection(self):
        with pytest.raises(VMwareError):
            VsphereClient(LOG, "vc", "u", "p").content()


@pytest.mark.unit
class TestWaitForTask:
    def test_returns_result(self):
        client = _connected_client()

        assert client.wait_for_task(make_task(result="done")) == "done"

    @patch("mcm_vsphere.vmware.clients.client.time.sleep")
    def test_polls_until_finished(self, sleep):
        client = _connected_client()
        task = make_task(state="running")
        states = iter(["running", "running", "success"])
        sleep.side_effect = lambda _s: setattr(task.info, "state", next(states))

        client.wait_for_task(task)

        assert sleep.call_count == 3

    def test_task_error_message(self):
        client = _connected_client()

        with pytest.raises(VMwareError) as ei:
            client.wait_for_task(make_task(state="error", error_msg="The operation is not allowed"))

        assert str(ei.value) == "The operation is not allowed"

    def test_task_fault_is_kept_as_cause(self):
        client = _connected_client()
        fault = vim.fault.NoPermission(msg="denied", privilegeId="VirtualMachine.Interact.PowerOff")
        task = make_task(state="error")
        task.info.error = fault

        with pytest.raises(VMwareError) as ei:
            client.wait_for_task(task)

        assert ei.value.cause is fault
        assert str(ei.value) == "denied"

    @patch("mcm_vsphere.vmware.clients.client.time.sleep")
    @patch("mcm_vsphere.vmware.clients.client.time.monotonic")
    def test_timeout(self, monotonic, _sleep):
        monotonic.side_effect = [0.0, 5.0, 11.0]
        client = _connected_client(task_timeout=10)

        with pytest.raises(VMwareError) as ei:
            client.wait_for_task(make_task(state="running"))

        assert "did not finish within 10" in str(ei.value)


@pytest.mark.unit
class TestPropertiesAndFields:
    def test_retrieve_properties_follows_token(self):
        content = MagicMock()
        vm1, vm2 = make_vm("a", moid="vm-1"), make_vm("b", moid="vm-2")
        page1 = MagicMock(token="t1", objects=[MagicMock(obj=vm1, propSet=[MagicMock(val="a")])])
        page1.objects[0].propSet[0].name = "name"
        page2 = MagicMock(token=None, objects=[MagicMock(obj=vm2, propSet=[])])
        content.propertyCollector.RetrievePropertiesEx.return_value = page1
        content.propertyCollector.ContinueRetrievePropertiesEx.return_value = page2
        client = _connected_client(content)

        out = client.retrieve_properties([vm1, vm2], vim.VirtualMachine, ["name"])

        assert out == {"vm-1": {"name": "a"}, "vm-2": {}}
        content.propertyCollector.ContinueRetrievePropertiesEx.assert_called_once_with(token="t1")

    def test_retrieve_properties_empty_input(self):
        client = _connected_client()

        assert client.retrieve_properties([], vim.VirtualMachine, ["name"]) == {}

    def test_ensure_custom_field_reuses_existing(self):
        content = MagicMock()
        existing = make_field(7, "kubernetes.io/role/node")
        content.customFieldsManager.field = [existing]
        client = _connected_client(content)

        assert client.ensure_vm_custom_field("kubernetes.io/role/node") is existing
        content.customFieldsManager.AddCustomFieldDef.assert_not_called()

    def test_ensure_custom_field_creates_missing(self):
        content = MagicMock()
        content.customFieldsManager.field = []
        client = _connected_client(content)

        client.ensure_vm_custom_field("kubernetes.io/cluster/dev")

        content.customFieldsManager.AddCustomFieldDef.assert_called_once_with(
            name="kubernetes.io/cluster/dev", moType=vim.VirtualMachine
        )
