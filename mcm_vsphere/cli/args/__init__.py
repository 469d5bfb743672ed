# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/cli/args/__init__.py
"""
Argument parser modules for the mcm-vsphere CLI.
"""
from __future__ import annotations

from .builder import HelpFormatter, _build_epilog
from .groups import ACTIONS, _add_global_config_logging, _add_machine_action, _add_session_knobs
from .parser import _build_preparser, _load_merged_config, build_parser, parse_args_with_config
from .validators import _merged_get, _require, validate_args

__all__ = [
    "ACTIONS",
    "HelpFormatter",
    "build_parser",
    "parse_args_with_config",
    "validate_args",
]
