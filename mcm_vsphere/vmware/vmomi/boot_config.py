# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/vmware/vmomi/boot_config.py
"""
First-boot configuration for cloned machines.

Two flavours:
  - ignition (CoreOS family): a fixed ignition 2.1.0 document
  - cloud-init: the secret's user data, shell scripts wrapped into cloud-config

Both end up base64 encoded in guestinfo.* VM options, which the guest
reads through VMware tools.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from string import Template
from typing import Dict, List, Sequence

import yaml

from ...apis.provider_spec import (
    BOOT_CONFIG_AUTO,
    BOOT_CONFIG_CLOUD_INIT,
    BOOT_CONFIG_IGNITION,
    VsphereProviderSpec,
)
from ...core.exceptions import BootConfigError

DEFAULT_INSTALL_PATH = "/var/lib/coreos-install"

# guest ids containing one of these boot with ignition under bootConfig=auto
IGNITION_GUEST_MARKERS = ("coreos", "flatcar")

# "\\n" stays a literal backslash-n inside the JSON strings
_IGNITION_TEMPLATE = Template(
    "{\n"
    '  "ignition": {"config":{},"timeouts":{},"version":"2.1.0"},\n'
    '  "networkd":{"units":[{"contents":"[Match]\\nName=ens192\\n\\n[Network]\\nDHCP=yes\\n'
    'LinkLocalAddressing=no\\nIPv6AcceptRA=no\\n","name":"00-ens192.network"}]},\n'
    '  "passwd":{"users":[{"name":"core","passwordHash":"${passwd_hash}","sshAuthorizedKeys":[${ssh_keys}]}]},\n'
    '  "storage": {\n'
    '\t"directories":[{"filesystem":"root","path":"${install_path}","mode":493}],\n'
    '\t"files":[\n'
    '\t  {"filesystem":"root","path":"/etc/hostname","contents":{"source":"data:,${hostname}"},"mode":420},\n'
    '\t  {"filesystem":"root","path":"${install_path}/user_data",'
    '"contents":{"source":"data:text/plain;charset=utf-8;base64,${userdata_base64}"},"mode":420}\n'
    "\t]\n"
    "  },\n"
    '  "systemd":{}\n'
    "}\n"
)

_CLOUD_INIT_SCRIPT_TEMPLATE = Template(
    "#cloud-config\n"
    "\n"
    "write_files:\n"
    "- encoding: b64\n"
    "  content: ${content}\n"
    "  owner: root:root\n"
    "  path: /root/cloud-init-script\n"
    "  permissions: '0555'\n"
    "\n"
    "runcmd:\n"
    "- /root/cloud-init-script\n"
    "- rm /root/cloud-init-script\n"
)


@dataclass
class IgnitionConfig:
    passwd_hash: str = ""
    hostname: str = ""
    ssh_keys: List[str] = field(default_factory=list)
    userdata_base64: str = ""
    install_path: str = DEFAULT_INSTALL_PATH


def ignition_file(config: IgnitionConfig) -> str:
    """Render `config` into the ignition document. Values are inserted verbatim."""
    try:
        keys = ",".join(f'"{k}"' for k in config.ssh_keys)
        return _IGNITION_TEMPLATE.substitute(
            passwd_hash=config.passwd_hash,
            hostname=config.hostname,
            ssh_keys=keys,
            userdata_base64=config.userdata_base64,
            install_path=config.install_path,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise BootConfigError(msg=f"Creating ignition file for CoreOS failed: {e}", cause=e)


def _b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def package_in_cloud_init(userdata: str) -> str:
    """Wrap a shell script into a cloud-config that writes, runs and removes it."""
    return _CLOUD_INIT_SCRIPT_TEMPLATE.substitute(content=_b64(userdata))


_QUOTE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


def go_quote(s: str) -> str:
    """
    Double-quoted literal with Go strconv.Quote escaping: printable
    characters verbatim, C0 controls and DEL as \\xNN, other unprintable
    characters as \\uNNNN or \\UNNNNNNNN.
    """
    out = ['"']
    for ch in s:
        code = ord(ch)
        if ch in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\x{code:02x}")
        elif code < 0x10000:
            out.append(f"\\u{code:04x}")
        else:
            out.append(f"\\U{code:08x}")
    out.append('"')
    return "".join(out)


def add_ssh_keys_section(userdata: str, ssh_keys: Sequence[str]) -> str:
    if not ssh_keys:
        return userdata
    if "ssh_authorized_keys:" in userdata:
        raise BootConfigError(msg="userdata already contains key `ssh_authorized_keys`")
    lines = [userdata, "\nssh_authorized_keys:\n"]
    for key in ssh_keys:
        lines.append(f"- {go_quote(key)}\n")
    return "".join(lines)


def prepare_user_data(userdata: str, ssh_keys: Sequence[str]) -> str:
    s = userdata
    if userdata.startswith("#!/"):
        # shell script: keys go into the cloud-config wrapper
        s = package_in_cloud_init(userdata)
    return add_ssh_keys_section(s, ssh_keys)


def resolve_boot_config(mode: str, guest_id: str) -> str:
    """Concrete flavour for `mode`; auto decides from the guest id."""
    if mode and mode != BOOT_CONFIG_AUTO:
        return mode
    gid = (guest_id or "").lower()
    if any(m in gid for m in IGNITION_GUEST_MARKERS):
        return BOOT_CONFIG_IGNITION
    return BOOT_CONFIG_CLOUD_INIT


def guestinfo_options(flavour: str, document: str, *, machine_name: str = "") -> Dict[str, str]:
    """VM extraConfig entries carrying `document` to the guest."""
    if flavour == BOOT_CONFIG_IGNITION:
        return {
            "guestinfo.coreos.config.data": _b64(document),
            "guestinfo.coreos.config.data.encoding": "base64",
        }
    if flavour == BOOT_CONFIG_CLOUD_INIT:
        metadata = yaml.safe_dump(
            {"instance-id": machine_name, "local-hostname": machine_name},
            default_flow_style=False,
            sort_keys=False,
        )
        return {
            "guestinfo.userdata": _b64(document),
            "guestinfo.userdata.encoding": "base64",
            "guestinfo.metadata": _b64(metadata),
            "guestinfo.metadata.encoding": "base64",
        }
    raise BootConfigError(msg=f"unknown boot config {flavour!r}")


def boot_config_options(
    spec: VsphereProviderSpec,
    machine_name: str,
    user_data: str,
    guest_id: str,
) -> Dict[str, str]:
    """
    Render the boot configuration for `machine_name` and return it as
    guestinfo options.

    Ignition carries the raw user data as a file below the install path;
    cloud-init gets the user data itself, with the provider spec SSH keys appended.
    """
    flavour = resolve_boot_config(spec.boot_config, spec.guest_id or guest_id)
    if flavour == BOOT_CONFIG_IGNITION:
        document = ignition_file(
            IgnitionConfig(
                passwd_hash=spec.password_hash,
                hostname=machine_name,
                ssh_keys=list(spec.ssh_keys),
                userdata_base64=_b64(user_data),
            )
        )
    else:
        document = prepare_user_data(user_data, spec.ssh_keys)
    return guestinfo_options(flavour, document, machine_name=machine_name)
