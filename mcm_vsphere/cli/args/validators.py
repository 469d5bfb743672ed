# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/cli/args/validators.py
from __future__ import annotations

import argparse
from typing import Any, Dict, Optional

from .groups import ACTIONS


def _require(v: Any) -> bool:
    """True if v is meaningfully present (treats empty/whitespace-only strings as missing)."""
    if v is None:
        return False
    if isinstance(v, str):
        return v.strip() != ""
    return True


def _merged_get(args: argparse.Namespace, conf: Dict[str, Any], key: str) -> Any:
    """Prefer CLI override if present (non-empty), else config."""
    v = getattr(args, key, None)
    if _require(v):
        return v
    return conf.get(key)


def _validate_machine_ref(args: argparse.Namespace, conf: Dict[str, Any], action: str) -> None:
    name = _merged_get(args, conf, "machine_name")
    machine_id: Optional[Any] = _merged_get(args, conf, "machine_id")
    provider_id = _merged_get(args, conf, "provider_id")

    if _require(machine_id) and _require(provider_id):
        raise SystemExit("--machine-id and --provider-id are mutually exclusive")

    if action == "create":
        if not _require(name):
            raise SystemExit("action=create: missing required `machine_name:` (YAML) or CLI --machine-name")
        return

    if not (_require(name) or _require(machine_id) or _require(provider_id)):
        raise SystemExit(
            f"action={action}: need `machine_name:` or `machine_id:` / `provider_id:` (YAML) or CLI equivalents"
        )


def validate_args(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    """
    The action comes from --action or YAML `action:`; everything else it needs
    must be present in the merged view.
    """
    action = _merged_get(args, conf, "action")
    if not _require(action):
        raise SystemExit(f"Missing required YAML key: `action:` (or CLI --action). One of: {', '.join(ACTIONS)}.")
    action = str(action).strip().lower()
    if action not in ACTIONS:
        raise SystemExit(f"Unknown action={action!r}. One of: {', '.join(ACTIONS)}.")
    args.action = action

    if action != "list":
        _validate_machine_ref(args, conf, action)

    spec = conf.get("provider_spec", conf.get("providerSpec"))
    if spec is None:
        raise SystemExit("Missing required YAML section: `provider_spec:`")
