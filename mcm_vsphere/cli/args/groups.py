# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/cli/args/groups.py
from __future__ import annotations

import argparse

ACTIONS = ("create", "delete", "shutdown", "status", "list")


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    # Global config/logging (two-phase parse relies on these)
    from ... import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file (repeatable; later overrides earlier).",
    )
    p.add_argument("--dump-config", action="store_true", help="Print merged config (secrets redacted) and exit.")
    p.add_argument("--dump-args", action="store_true", help="Print final parsed args and exit.")
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -v, -vv, -vvv")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Less output: -q warnings, -qq errors")
    p.add_argument("--log-file", dest="log_file", default=None, help="Write logs to file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Log as NDJSON on stderr.")
    p.add_argument("--no-color", dest="color", action="store_false", help="Disable colored log output.")


def _add_machine_action(p: argparse.ArgumentParser) -> None:
    # Machine action (normally from YAML `action:`)
    p.add_argument("--action", dest="action", default=None, choices=ACTIONS, help="Machine action to run.")
    p.add_argument("--machine-name", dest="machine_name", default=None, help="Machine (VM) name.")
    p.add_argument("--machine-id", dest="machine_id", default=None, help="Machine BIOS UUID.")
    p.add_argument(
        "--provider-id",
        dest="provider_id",
        default=None,
        help="Provider ID (vsphere://<uuid>); alternative to --machine-id.",
    )
    p.add_argument("--json", dest="json", action="store_true", help="Print the result as JSON on stdout.")


def _add_session_knobs(p: argparse.ArgumentParser) -> None:
    # vSphere session knobs; credentials live in the `secret:` config section
    p.add_argument("--timeout", dest="timeout", type=float, default=None, help="Connect timeout in seconds.")
    p.add_argument(
        "--task-timeout",
        dest="task_timeout",
        type=float,
        default=None,
        help="Give up waiting for a vSphere task after this many seconds (default: wait forever).",
    )
