# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/__main__.py
from __future__ import annotations

import sys
import traceback
from typing import Optional, Sequence

from .cli.args.parser import parse_args_with_config
from .cli.command import run_machine_command
from .core.exceptions import Fatal


def _print_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


def _safe_log(logger, level: str, msg: str) -> None:
    if logger is None:
        _print_stderr(msg)
        return
    fn = getattr(logger, level, None)
    if callable(fn):
        fn(msg)
    else:
        _print_stderr(msg)


def main(argv: Optional[Sequence[str]] = None) -> None:
    logger: Optional[object] = None

    # Phase 1: parse (Fatal can happen here, e.g. unreadable config)
    try:
        args, conf, logger = parse_args_with_config(argv)
    except Fatal as e:
        _safe_log(logger, "error", f"💥 ERROR    {e}")
        raise SystemExit(getattr(e, "code", 1))
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        raise SystemExit(130)

    # Phase 2: run the action; run_machine_command maps errors to exit codes
    try:
        rc = run_machine_command(args, conf, logger)
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        rc = 130
    except Exception as e:
        _safe_log(logger, "error", f"💥 UNHANDLED {type(e).__name__}: {e}")
        _safe_log(logger, "debug", traceback.format_exc())
        rc = 1

    raise SystemExit(rc)


if __name__ == "__main__":
    main()
