# SPDX-License-Identifier: LGPL-3.0-or-later
# mcm_vsphere/vmware/errors.py
# -*- coding: utf-8 -*-
"""Error classification and exit code handling for machine operations"""
from __future__ import annotations

import errno
import socket
from enum import IntEnum

from pyVmomi import vim

from ..core.exceptions import BootConfigError, Fatal, MachineNotFoundError, McmVsphereError, VMwareError


class VsphereExitCode(IntEnum):
    OK = 0
    UNKNOWN = 1
    USAGE = 2
    CONFIG = 3

    AUTH = 10
    NOT_FOUND = 11
    NETWORK = 12

    BOOT_CONFIG = 20
    VSPHERE_API = 30
    LOCAL_IO = 40

    INTERRUPTED = 130


def _is_usage_error(e: BaseException) -> bool:
    msg = str(e).lower()
    return (
        "unknown action" in msg
        or "missing required arg" in msg
        or "argparse" in msg
        or "usage:" in msg
    )


def _is_auth_error(e: BaseException) -> bool:
    if isinstance(e, (vim.fault.InvalidLogin, vim.fault.NoPermission, vim.fault.NotAuthenticated)):
        return True
    msg = str(e).lower()
    needles = [
        "not authenticated",
        "authentication",
        "unauthorized",
        "forbidden",
        "invalid login",
        "incorrect user name or password",
        "no permission",
        "permission to perform this operation was denied",
    ]
    return any(n in msg for n in needles)


def _is_not_found_error(e: BaseException) -> bool:
    if isinstance(e, MachineNotFoundError):
        return True
    msg = str(e).lower()
    needles = [
        "not found",
        "does not exist",
        "no such vm",
    ]
    return any(n in msg for n in needles)


def _is_network_error(e: BaseException) -> bool:
    if isinstance(e, (socket.timeout, TimeoutError, ConnectionError)):
        return True
    if isinstance(e, OSError) and e.errno in (
        errno.ECONNREFUSED,
        errno.ETIMEDOUT,
        errno.EHOSTUNREACH,
        errno.ENETUNREACH,
        errno.ECONNRESET,
    ):
        return True
    msg = str(e).lower()
    needles = [
        "timed out",
        "timeout",
        "connection refused",
        "connection reset",
        "name or service not known",
        "temporary failure in name resolution",
        "ssl",
        "handshake",
        "certificate verify failed",
    ]
    return any(n in msg for n in needles)


def _is_local_io_error(e: BaseException) -> bool:
    if isinstance(e, OSError) and e.errno in (
        errno.EACCES,
        errno.EPERM,
        errno.ENOSPC,
        errno.EROFS,
        errno.EDQUOT,
    ):
        return True
    msg = str(e).lower()
    needles = ["no space left", "permission denied", "read-only file system"]
    return any(n in msg for n in needles)


def _classify_via_cause(e: VMwareError) -> VsphereExitCode:
    # connect(), wait_for_task() and the wrap_* helpers keep the original
    # exception as cause; run_task() wraps once more, so follow the chain
    cause = e.cause
    while cause is not None:
        if _is_auth_error(cause):
            return VsphereExitCode.AUTH
        cause = cause.cause if isinstance(cause, McmVsphereError) else None
    if e.code == VsphereExitCode.NETWORK:
        return VsphereExitCode.NETWORK
    if e.code == VsphereExitCode.NOT_FOUND:
        return VsphereExitCode.NOT_FOUND
    return VsphereExitCode.UNKNOWN


def _classify_exit_code(e: BaseException) -> VsphereExitCode:
    if isinstance(e, KeyboardInterrupt):
        return VsphereExitCode.INTERRUPTED

    if isinstance(e, MachineNotFoundError):
        return VsphereExitCode.NOT_FOUND
    if isinstance(e, BootConfigError):
        return VsphereExitCode.BOOT_CONFIG
    if isinstance(e, Fatal):
        return VsphereExitCode.USAGE if _is_usage_error(e) else VsphereExitCode.CONFIG

    # VMwareError: "expected operational failure" buckets.
    if isinstance(e, VMwareError):
        by_cause = _classify_via_cause(e)
        if by_cause != VsphereExitCode.UNKNOWN:
            return by_cause
        if _is_auth_error(e):
            return VsphereExitCode.AUTH
        if _is_not_found_error(e):
            return VsphereExitCode.NOT_FOUND
        if _is_network_error(e):
            return VsphereExitCode.NETWORK
        return VsphereExitCode.VSPHERE_API

    # Non-project exceptions
    if _is_usage_error(e):
        return VsphereExitCode.USAGE
    if _is_auth_error(e):
        return VsphereExitCode.AUTH
    if _is_local_io_error(e):
        return VsphereExitCode.LOCAL_IO
    if _is_network_error(e):
        return VsphereExitCode.NETWORK

    return VsphereExitCode.UNKNOWN
