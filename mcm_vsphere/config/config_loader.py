# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/config/config_loader.py
"""
YAML/JSON config loading.

Config files are merged in the order given (later wins, dicts merge deeply).
Top-level keys that match argparse destinations become parser defaults, so a
flag on the command line always overrides the file.
"""
from __future__ import annotations

import argparse
import glob
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from ..core.exceptions import Fatal
from ..core.utils import U


class Config:
    @staticmethod
    def expand_configs(logger: logging.Logger, cfgs: Sequence[str]) -> List[Path]:
        """
        Expand ~ and glob patterns. A pattern that matches nothing is an error.
        """
        out: List[Path] = []
        for raw in cfgs:
            pattern = str(Path(raw).expanduser())
            matches = sorted(glob.glob(pattern)) if any(ch in pattern for ch in "*?[") else [pattern]
            if not matches:
                raise Fatal(2, f"config pattern matched no files: {raw}")
            for m in matches:
                p = Path(m)
                if not p.is_file():
                    raise Fatal(2, f"config file not found: {p}")
                out.append(p)
        logger.debug("Config files: %s", [str(p) for p in out])
        return out

    @staticmethod
    def load_file(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        text = Path(path).read_text(encoding="utf-8")
        try:
            if path.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise Fatal(2, f"failed to parse config {path}: {e}", cause=e)

        if data is None:
            logger.warning("Config %s is empty", path)
            return {}
        if not isinstance(data, dict):
            raise Fatal(2, f"config {path} must be a mapping at top level, got {type(data).__name__}")
        return data

    @staticmethod
    def load_many(logger: logging.Logger, paths: Sequence[Path]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in paths:
            merged = U.deep_merge(merged, Config.load_file(logger, p))
            logger.debug("Loaded config: %s", p)
        return merged

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        """
        Push known top-level keys into parser defaults. Keys may use dashes or
        underscores (machine-name == machine_name).
        """
        dests = {a.dest for a in parser._actions}
        defaults: Dict[str, Any] = {}
        for k, v in conf.items():
            dest = str(k).replace("-", "_")
            if dest in dests:
                defaults[dest] = v
        if defaults:
            logger.debug("Config defaults applied: %s", sorted(defaults))
            parser.set_defaults(**defaults)
