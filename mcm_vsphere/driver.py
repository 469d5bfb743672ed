# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/driver.py
"""
Machine driver: the surface the machine controller talks to.

Each call opens its own vSphere session from the secret and closes it before
returning. Machines are identified towards the controller by provider IDs of
the form vsphere://<bios-uuid>.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from .apis.provider_spec import VsphereProviderSpec, VsphereSecret
from .core.creds import VsphereCreds
from .core.exceptions import Fatal, MachineNotFoundError
from .core.logger import Log
from .vmware.clients.client import VsphereClient
from .vmware.vmomi.create import create_vm
from .vmware.vmomi.lifecycle import EntityInfo, delete_vm, find_vm, shut_down_vm, visit_virtual_machines

PROVIDER_ID_PREFIX = "vsphere://"

ClientFactory = Callable[[VsphereCreds], VsphereClient]


def encode_provider_id(machine_id: str) -> str:
    return f"{PROVIDER_ID_PREFIX}{machine_id}"


def decode_provider_id(provider_id: str) -> str:
    """BIOS UUID from a provider ID; empty input gives an empty UUID."""
    if not provider_id:
        return ""
    if not provider_id.startswith(PROVIDER_ID_PREFIX):
        raise Fatal(2, f"unexpected providerID: {provider_id}")
    machine_id = provider_id[len(PROVIDER_ID_PREFIX):]
    if not machine_id:
        raise Fatal(2, f"providerID without machine id: {provider_id}")
    return machine_id


class Driver:
    def __init__(
        self,
        logger: logging.Logger,
        client_factory: Optional[ClientFactory] = None,
        *,
        timeout: Optional[float] = None,
        task_timeout: Optional[float] = None,
    ) -> None:
        self.logger = logger
        self.timeout = timeout
        self.task_timeout = task_timeout
        self.client_factory = client_factory or self._default_client

    def _default_client(self, creds: VsphereCreds) -> VsphereClient:
        return VsphereClient.from_creds(self.logger, creds, timeout=self.timeout, task_timeout=self.task_timeout)

    def _session(self, secret: VsphereSecret) -> VsphereClient:
        return self.client_factory(secret.creds)

    def create_machine(
        self, machine_name: str, spec: VsphereProviderSpec, secret: VsphereSecret
    ) -> Tuple[str, str]:
        """Returns (provider_id, node_name)."""
        spec.ensure_valid()
        secret.ensure_valid(require_user_data=True)
        Log.step(self.logger, "Create machine", machine=machine_name)
        with self._session(secret) as client:
            machine_id = create_vm(client, spec, machine_name, secret.user_data)
        provider_id = encode_provider_id(machine_id)
        Log.ok(self.logger, "Machine created", machine=machine_name, provider_id=provider_id)
        return provider_id, machine_name

    def delete_machine(
        self, machine_name: str, provider_id: str, spec: VsphereProviderSpec, secret: VsphereSecret
    ) -> str:
        """
        Power off and destroy. A machine that is already gone counts as deleted;
        the given provider ID is returned unchanged in that case.
        """
        machine_id = decode_provider_id(provider_id)
        Log.step(self.logger, "Delete machine", machine=machine_name, provider_id=provider_id)
        with self._session(secret) as client:
            try:
                found = delete_vm(client, spec, machine_name, machine_id)
            except MachineNotFoundError as e:
                Log.warn(self.logger, f"Nothing to delete: {e}", machine=machine_name)
                return provider_id
        Log.ok(self.logger, "Machine deleted", machine=machine_name)
        return encode_provider_id(found)

    def shutdown_machine(
        self, machine_name: str, provider_id: str, spec: VsphereProviderSpec, secret: VsphereSecret
    ) -> str:
        machine_id = decode_provider_id(provider_id)
        with self._session(secret) as client:
            found = shut_down_vm(client, spec, machine_name, machine_id)
        Log.ok(self.logger, "Machine powered off", machine=machine_name)
        return encode_provider_id(found)

    def get_machine_status(
        self, machine_name: str, provider_id: str, spec: VsphereProviderSpec, secret: VsphereSecret
    ) -> Tuple[str, str]:
        """Returns (provider_id, node_name); MachineNotFoundError when absent."""
        machine_id = decode_provider_id(provider_id)
        with self._session(secret) as client:
            vm = find_vm(client, spec, machine_name, machine_id)
            found = str(vm.config.uuid)
            node_name = machine_name or str(vm.name)
        return encode_provider_id(found), node_name

    def list_machines(self, spec: VsphereProviderSpec, secret: VsphereSecret) -> Dict[str, str]:
        """{provider_id: name} for machines in the provider spec folder carrying every provider spec tag."""
        wanted = dict(spec.tags)
        machines: Dict[str, str] = {}

        def visitor(vm: Any, info: EntityInfo, fields: List[Any]) -> None:
            values = info.values_by_name(fields)
            if any(values.get(k) != v for k, v in wanted.items()):
                return
            machines[encode_provider_id(info.uuid)] = info.name

        with self._session(secret) as client:
            visit_virtual_machines(client, spec, visitor)
        self.logger.debug("Found %d machines", len(machines))
        return machines
