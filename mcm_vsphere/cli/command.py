# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/cli/command.py
"""
Machine action router: maps --action onto Driver calls and renders results.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

from rich.console import Console
from rich.table import Table

from ..apis.provider_spec import VsphereProviderSpec, VsphereSecret, load_machine_inputs
from ..core.exceptions import Fatal, McmVsphereError, format_exception_for_cli
from ..core.logger import is_tty
from ..core.utils import U
from ..driver import Driver, encode_provider_id
from ..vmware.errors import VsphereExitCode, _classify_exit_code


class _Emitter:
    """
    Exactly one output style per action:
      - --json => print JSON payload only
      - non-json => log human lines (or a single human message)
    """

    def __init__(self, args: Any, logger: Any):
        self.args = args
        self.logger = logger

    def json_enabled(self) -> bool:
        return bool(getattr(self.args, "json", False))

    def emit(
        self,
        payload: Any,
        *,
        human: Optional[Iterable[str]] = None,
        human_msg: Optional[str] = None,
    ) -> None:
        if self.json_enabled():
            print(U.json_dump(payload))
            return

        if human is not None:
            for line in human:
                self.logger.info("%s", line)
            return

        if human_msg:
            self.logger.info("%s", human_msg)
            return

        self.logger.info("%s", U.json_dump(payload))

    def table(self, payload: Any, title: str, columns: Iterable[str], rows: Iterable[Iterable[str]]) -> None:
        """JSON with --json; a rich table on a terminal; log lines otherwise."""
        if self.json_enabled():
            print(U.json_dump(payload))
            return
        rows = [list(r) for r in rows]
        if not is_tty():
            self.emit(payload, human=["  ".join(r) for r in rows] or ["(none)"])
            return
        t = Table(title=title, highlight=True)
        for col in columns:
            t.add_column(col)
        for r in rows:
            t.add_row(*r)
        Console().print(t)


class MachineCommands:
    def __init__(self, driver: Driver, args: Any, spec: VsphereProviderSpec, secret: VsphereSecret, logger: Any):
        self.driver = driver
        self.args = args
        self.spec = spec
        self.secret = secret
        self.logger = logger
        self.out = _Emitter(args, logger)

    def _name(self) -> str:
        return str(getattr(self.args, "machine_name", None) or "")

    def _provider_id(self) -> str:
        pid = getattr(self.args, "provider_id", None)
        if pid:
            return str(pid)
        mid = getattr(self.args, "machine_id", None)
        return encode_provider_id(str(mid)) if mid else ""

    def create(self) -> None:
        provider_id, node_name = self.driver.create_machine(self._name(), self.spec, self.secret)
        self.out.emit(
            {"provider_id": provider_id, "node_name": node_name},
            human_msg=f"created {node_name}: {provider_id}",
        )

    def delete(self) -> None:
        provider_id = self.driver.delete_machine(self._name(), self._provider_id(), self.spec, self.secret)
        self.out.emit({"provider_id": provider_id}, human_msg=f"deleted {self._name() or provider_id}")

    def shutdown(self) -> None:
        provider_id = self.driver.shutdown_machine(self._name(), self._provider_id(), self.spec, self.secret)
        self.out.emit({"provider_id": provider_id}, human_msg=f"powered off {self._name() or provider_id}")

    def status(self) -> None:
        provider_id, node_name = self.driver.get_machine_status(
            self._name(), self._provider_id(), self.spec, self.secret
        )
        self.out.emit(
            {"provider_id": provider_id, "node_name": node_name},
            human_msg=f"{node_name}: {provider_id}",
        )

    def list_machines(self) -> None:
        machines = self.driver.list_machines(self.spec, self.secret)
        rows = [(name, pid) for pid, name in sorted(machines.items(), key=lambda kv: kv[1])]
        self.out.table(machines, "Machines", ("Name", "Provider ID"), rows)


_ACTIONS: Dict[str, str] = {
    "create": "create",
    "delete": "delete",
    "shutdown": "shutdown",
    "status": "status",
    "list": "list_machines",
}


def _get_action_or_raise(args: Any) -> str:
    action = getattr(args, "action", None)
    if not action:
        raise Fatal(2, "missing action (argparse should have required it)")
    action = str(action)
    if action not in _ACTIONS:
        raise Fatal(2, f"unknown action: {action}")
    return action


def _build_driver(args: Any, logger: logging.Logger) -> Driver:
    return Driver(
        logger,
        timeout=getattr(args, "timeout", None),
        task_timeout=getattr(args, "task_timeout", None),
    )


def run_machine_command(
    args: Any,
    conf: Optional[Dict[str, Any]],
    logger: logging.Logger,
    driver: Optional[Driver] = None,
) -> int:
    """
    Run one machine action. Returns structured exit codes suitable for shell/CI.
    """
    try:
        action = _get_action_or_raise(args)
        spec, secret_raw = load_machine_inputs(conf or {})
        secret = VsphereSecret.from_dict(secret_raw)
        cmd = MachineCommands(driver or _build_driver(args, logger), args, spec, secret, logger)
        getattr(cmd, _ACTIONS[action])()
        return int(VsphereExitCode.OK)

    except KeyboardInterrupt:
        logger.warning("Interrupted by user (Ctrl+C).")
        return int(VsphereExitCode.INTERRUPTED)

    except McmVsphereError as e:
        code = _classify_exit_code(e)
        logger.error(
            "%s failed (%s): %s",
            getattr(args, "action", "command"),
            code.name,
            format_exception_for_cli(e, verbose=int(getattr(args, "verbose", 0) or 0)),
        )
        return int(code)

    except Exception as e:
        code = _classify_exit_code(e)
        logger.exception("%s crashed (%s): %s", getattr(args, "action", "command"), code.name, e)
        return int(code)
