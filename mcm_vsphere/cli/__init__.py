# SPDX-License-Identifier: LGPL-3.0-or-later
# mcm_vsphere/cli/__init__.py
"""Command line front end: argument parsing and the machine action router."""

__all__ = []
