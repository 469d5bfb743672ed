# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/core/utils.py
from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from .exceptions import _is_secret_key


class U:
    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except Exception:
            return repr(obj)

    @staticmethod
    def to_bool(v: Any, default: bool = False) -> bool:
        if v is None:
            return default
        if isinstance(v, bool):
            return v
        s = str(v).strip().lower()
        if s in ("1", "true", "yes", "y", "on"):
            return True
        if s in ("0", "false", "no", "n", "off", ""):
            return False
        return default

    @staticmethod
    def deep_merge(base: Mapping[str, Any], over: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Recursive dict merge; `over` wins. Lists and scalars are replaced, not merged.
        """
        out: Dict[str, Any] = dict(base)
        for k, v in over.items():
            if isinstance(v, Mapping) and isinstance(out.get(k), Mapping):
                out[k] = U.deep_merge(out[k], v)
            else:
                out[k] = v
        return out

    @staticmethod
    def redact(obj: Any) -> Any:
        """Copy of `obj` with values under secret-looking keys replaced."""
        if isinstance(obj, Mapping):
            return {
                k: ("<redacted>" if _is_secret_key(str(k)) and v not in (None, "") else U.redact(v))
                for k, v in obj.items()
            }
        if isinstance(obj, list):
            return [U.redact(v) for v in obj]
        return obj
