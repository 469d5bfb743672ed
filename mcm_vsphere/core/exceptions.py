# SPDX-License-Identifier: LGPL-3.0-or-later
# mcm_vsphere/core/exceptions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


def _safe_int(x: Any, default: int = 1) -> int:
    try:
        return int(x)
    except Exception:
        return default


def _clamp_exit_code(code: int) -> int:
    if code < 0:
        return 1
    if code > 255:
        return 255
    return code


def _one_line(s: str, limit: int = 600) -> str:
    s = " ".join((s or "").split())
    return s if len(s) <= limit else (s[: limit - 3] + "...")


_SECRET_KEY_PARTS = (
    "pass",
    "secret",
    "token",
    "userdata",
    "user_data",
    "auth",
    "cookie",
    "session",
    "private",
)


def _is_secret_key(k: str) -> bool:
    ks = (k or "").lower()
    return any(p in ks for p in _SECRET_KEY_PARTS)


def _format_context_compact(ctx: Dict[str, Any]) -> str:
    parts = []
    for k in sorted(ctx.keys()):
        if _is_secret_key(str(k)):
            parts.append(f"{k}=<redacted>")
        else:
            parts.append(f"{k}={ctx[k]!r}")
    return ", ".join(parts)


@dataclass(eq=False)
class McmVsphereError(Exception):
    """
    Base project error with:
      - stable fields for reporting/JSON
      - readable __str__ (what the controller and CLI users see)
      - exit code clamped to 0..255
    """
    code: int = 1
    msg: str = "error"
    cause: Optional[BaseException] = None
    context: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        self.code = _clamp_exit_code(_safe_int(self.code, default=1))
        self.msg = _one_line(self.msg) or self.__class__.__name__
        super().__init__(self.msg)
        self.args = (self.msg,)

    def with_context(self, **ctx: Any) -> "McmVsphereError":
        if self.context is None:
            self.context = {}
        self.context.update(ctx)
        return self

    def user_message(self, *, include_context: bool = False, include_cause: bool = False) -> str:
        parts = [self.msg or self.__class__.__name__]

        if include_context and self.context:
            parts.append(f"[{_one_line(_format_context_compact(self.context))}]")

        if include_cause and self.cause is not None:
            parts.append(f"(cause: {type(self.cause).__name__}: {_one_line(str(self.cause))})")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.user_message()

    def to_dict(self, *, include_cause: bool = False) -> Dict[str, Any]:
        ctx = {
            k: ("<redacted>" if _is_secret_key(str(k)) else v)
            for k, v in (self.context or {}).items()
        }
        d: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "code": self.code,
            "message": self.msg,
            "context": ctx,
        }
        if include_cause and self.cause is not None:
            d["cause"] = {"type": type(self.cause).__name__, "message": _one_line(str(self.cause))}
        return d


class Fatal(McmVsphereError):
    """
    User-facing fatal error: bad configuration, bad arguments, malformed IDs.
    """
    pass


class VMwareError(McmVsphereError):
    """
    vSphere/vCenter operation failed.
    Use for pyVmomi / SDK / task errors.
    """
    pass


class BootConfigError(McmVsphereError):
    """Rendering ignition or cloud-init user data failed."""
    pass


@dataclass(eq=False)
class MachineNotFoundError(VMwareError):
    """
    The machine does not exist on the vSphere side.

    Callers treat this as "absent", not as a failure of the operation.
    """
    name: str = ""
    machine_id: str = ""

    def __post_init__(self) -> None:
        if self.code == 1:
            self.code = 11
        self.msg = f"machine name={self.name}, uuid={self.machine_id} not found"
        super().__post_init__()


def wrap_fatal(msg: str, exc: Optional[BaseException] = None, code: int = 1, **context: Any) -> Fatal:
    return Fatal(code=code, msg=msg, cause=exc, context=context or None)


def wrap_vmware(msg: str, exc: Optional[BaseException] = None, code: int = 30, **context: Any) -> VMwareError:
    """
    Wrap a lower-level failure as "<msg>: <cause>".
    """
    text = f"{msg}: {exc}" if exc is not None else msg
    return VMwareError(code=code, msg=text, cause=exc, context=context or None)


def format_exception_for_cli(e: BaseException, *, verbose: int = 0) -> str:
    """
    One-liner output for CLI.

    verbose=0: just message
    verbose=1: message + compact context (if any)
    verbose>=2: message + context + cause
    """
    if isinstance(e, McmVsphereError):
        return e.user_message(
            include_context=(verbose >= 1),
            include_cause=(verbose >= 2),
        )

    if verbose >= 2:
        return f"{type(e).__name__}: {_one_line(str(e))}"
    return _one_line(str(e)) or type(e).__name__
