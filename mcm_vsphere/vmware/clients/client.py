# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/vmware/clients/client.py
from __future__ import annotations

"""
vSphere / vCenter session client for mcm_vsphere.

Owns the pyVmomi service instance and the handful of primitives every
operation needs: content, search index, task waiting and batched property
retrieval.
"""

import logging
import socket
import ssl
import time
from typing import Any, Dict, List, Optional, Sequence

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim, vmodl

from ...core.creds import VsphereCreds
from ...core.exceptions import VMwareError, wrap_vmware

_TASK_POLL_S = 1.0


class VsphereClient:
    """
    vSphere/vCenter session used by the VM locator, lifecycle and creator.
    """

    def __init__(
        self,
        logger: logging.Logger,
        host: str,
        user: str,
        password: str,
        *,
        port: int = 443,
        insecure: bool = False,
        timeout: Optional[float] = None,
        task_timeout: Optional[float] = None,
    ) -> None:
        self.logger = logger
        self.host = (host or "").strip()
        self.user = (user or "").strip()
        self.password = password or ""
        self.port = int(port)
        self.insecure = bool(insecure)
        self.timeout = timeout
        self.task_timeout = task_timeout

        self.si: Any = None

    @classmethod
    def from_creds(
        cls,
        logger: logging.Logger,
        creds: VsphereCreds,
        *,
        timeout: Optional[float] = None,
        task_timeout: Optional[float] = None,
    ) -> "VsphereClient":
        return cls(
            logger,
            creds.host,
            creds.user,
            creds.password,
            port=creds.port,
            insecure=creds.insecure,
            timeout=timeout,
            task_timeout=task_timeout,
        )

    # Context managers

    def __enter__(self) -> "VsphereClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.disconnect()
        return False

    # Connection

    def _ssl_context(self) -> ssl.SSLContext:
        """
        SSL context for the vSphere endpoint.

        insecure=True disables certificate verification entirely; only meant
        for labs with self-signed certificates.
        """
        if self.insecure:
            self.logger.warning("TLS certificate verification is DISABLED for %s", self.host)
            ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            return ctx
        return ssl.create_default_context()

    def _smart_connect(self, ctx: ssl.SSLContext) -> Any:
        return SmartConnect(
            host=self.host,
            user=self.user,
            pwd=self.password,
            port=self.port,
            sslContext=ctx,
        )

    def connect(self) -> None:
        ctx = self._ssl_context()
        try:
            if self.timeout is not None:
                old_timeout = socket.getdefaulttimeout()
                socket.setdefaulttimeout(self.timeout)
                try:
                    self.si = self._smart_connect(ctx)
                finally:
                    socket.setdefaulttimeout(old_timeout)
            else:
                self.si = self._smart_connect(ctx)
        except Exception as e:
            self.si = None
            raise wrap_vmware(f"Failed to connect to vSphere {self.host}:{self.port}", e, code=12)
        self.logger.info("Connected to vSphere: %s:%s", self.host, self.port)

    def disconnect(self) -> None:
        try:
            if self.si is not None:
                Disconnect(self.si)
        except Exception as e:
            self.logger.error("Error during disconnect: %s", e)
        finally:
            self.si = None

    def content(self) -> Any:
        if not self.si:
            raise VMwareError(msg="Not connected")
        try:
            return self.si.RetrieveContent()
        except Exception as e:
            raise wrap_vmware("Failed to retrieve content", e)

    def search_index(self) -> Any:
        return self.content().searchIndex

    # Tasks

    def wait_for_task(self, task: Any, *, timeout: Optional[float] = None) -> Any:
        """
        Poll a vim.Task until it finishes; return task.info.result.

        timeout (seconds) falls back to the client's task_timeout; None waits forever.
        """
        limit = timeout if timeout is not None else self.task_timeout
        deadline = (time.monotonic() + limit) if limit is not None else None
        while task.info.state not in (vim.TaskInfo.State.success, vim.TaskInfo.State.error):
            if deadline is not None and time.monotonic() >= deadline:
                raise VMwareError(msg=f"task {getattr(task, '_moId', '?')} did not finish within {limit}s")
            time.sleep(_TASK_POLL_S)
        if task.info.state == vim.TaskInfo.State.error:
            err = task.info.error
            raise VMwareError(msg=str(getattr(err, "msg", None) or err), cause=err)
        return task.info.result

    # Property collector

    def retrieve_properties(
        self,
        objs: Sequence[Any],
        obj_type: Any,
        path_set: Sequence[str],
    ) -> Dict[str, Dict[str, Any]]:
        """
        Fetch `path_set` for every object in one PropertyCollector round trip.

        Returns {moId: {property: value}}. Objects vSphere drops (deleted
        concurrently) are simply absent from the result.
        """
        if not objs:
            return {}
        pc = self.content().propertyCollector
        prop_spec = vmodl.query.PropertyCollector.PropertySpec(type=obj_type, pathSet=list(path_set), all=False)
        obj_specs = [vmodl.query.PropertyCollector.ObjectSpec(obj=o, skip=False) for o in objs]
        filter_spec = vmodl.query.PropertyCollector.FilterSpec(objectSet=obj_specs, propSet=[prop_spec])
        options = vmodl.query.PropertyCollector.RetrieveOptions()

        out: Dict[str, Dict[str, Any]] = {}
        result = pc.RetrievePropertiesEx(specSet=[filter_spec], options=options)
        while result is not None:
            for oc in result.objects or []:
                out[oc.obj._moId] = {p.name: p.val for p in (oc.propSet or [])}
            token = getattr(result, "token", None)
            if not token:
                break
            result = pc.ContinueRetrievePropertiesEx(token=token)
        return out

    # Custom fields

    def custom_field_defs(self) -> List[Any]:
        return list(self.content().customFieldsManager.field or [])

    def ensure_vm_custom_field(self, name: str) -> Any:
        """Return the VM custom field definition `name`, creating it when missing."""
        mgr = self.content().customFieldsManager
        for f in mgr.field or []:
            if f.name == name and f.managedObjectType in (None, vim.VirtualMachine):
                return f
        self.logger.debug("Creating custom field definition %r", name)
        return mgr.AddCustomFieldDef(name=name, moType=vim.VirtualMachine)
