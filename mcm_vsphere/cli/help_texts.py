# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# mcm_vsphere/cli/help_texts.py
from __future__ import annotations

# Pure help text for the argparse epilog; keep it copy/paste runnable.

YAML_EXAMPLE = r"""# mcm-vsphere configuration (YAML)
#
# Run:
#   mcm-vsphere --config machine.yaml --action create
#
# Merge multiple configs (later overrides earlier):
#   mcm-vsphere --config base.yaml --config secret.yaml --action status
#
# Top-level keys double as CLI defaults (action, machine_name, json, ...).
#
action: create
machine_name: worker-0
provider_spec:
  datacenter: dc1
  folder: shoot--dev
  network: VM Network
  templateVM: coreos-template
  computeCluster: cluster1
  numCpus: 2
  memory: 4096
  systemDisk:
    size: 20
  sshKeys:
    - ssh-ed25519 AAAA... ops@example
  tags:
    kubernetes.io/cluster/dev: "1"
    kubernetes.io/role/node: "1"
secret:
  vsphereHost: vcenter.example.com
  vsphereUsername: administrator@vsphere.local
  vspherePasswordEnv: VSPHERE_PASSWORD
  vsphereInsecureSSL: false
  userData: |
    #cloud-config
    runcmd:
    - echo hello
"""

ACTIONS_SUMMARY = r"""
create    clone the template into a new machine and power it on
delete    power off and destroy the machine (absent machines are fine)
shutdown  power off the machine
status    print provider ID and node name of the machine
list      list machines in the folder carrying all provider spec tags
"""
