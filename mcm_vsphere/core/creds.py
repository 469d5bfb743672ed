# SPDX-License-Identifier: LGPL-3.0-or-later
# mcm_vsphere/core/creds.py
"""
vSphere credential resolution shared by the CLI and the driver.

Lookup order per field:
  1. explicit value in the secret mapping (e.g. vspherePassword)
  2. environment variable named by the *Env key (e.g. vspherePasswordEnv)
  3. VSPHERE_* environment fallback (VSPHERE_HOST, VSPHERE_USERNAME, VSPHERE_PASSWORD)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .exceptions import Fatal
from .utils import U

_FIELDS = {
    "host": ("vsphereHost", "VSPHERE_HOST"),
    "user": ("vsphereUsername", "VSPHERE_USERNAME"),
    "password": ("vspherePassword", "VSPHERE_PASSWORD"),
}


@dataclass(frozen=True)
class VsphereCreds:
    host: str
    user: str
    password: str
    insecure: bool = False
    port: int = 443

    def __repr__(self) -> str:
        return f"VsphereCreds(host={self.host!r}, user={self.user!r}, password=<redacted>, insecure={self.insecure})"


def _lookup(cfg: Mapping[str, Any], key: str, env_fallback: str) -> Optional[str]:
    v = cfg.get(key)
    if v not in (None, ""):
        return str(v).strip()
    env_name = cfg.get(f"{key}Env")
    if env_name:
        v = os.environ.get(str(env_name))
        if v:
            return v.strip()
        raise Fatal(2, f"{key}Env points to unset environment variable {env_name!r}")
    v = os.environ.get(env_fallback)
    return v.strip() if v else None


def resolve_vsphere_creds(cfg: Mapping[str, Any]) -> VsphereCreds:
    """
    Build VsphereCreds from a secret mapping. Raises Fatal listing every missing field.
    """
    found = {name: _lookup(cfg, key, env) for name, (key, env) in _FIELDS.items()}
    missing = [_FIELDS[name][0] for name, v in found.items() if not v]
    if missing:
        raise Fatal(2, f"missing vSphere credentials: {', '.join(missing)}")

    insecure = U.to_bool(cfg.get("vsphereInsecureSSL", os.environ.get("VSPHERE_INSECURE")), default=False)
    port = int(cfg.get("vspherePort") or 443)
    return VsphereCreds(
        host=str(found["host"]),
        user=str(found["user"]),
        password=str(found["password"]),
        insecure=insecure,
        port=port,
    )
