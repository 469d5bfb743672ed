# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Unit Tests for config file loading

Tests YAML/JSON loading, glob expansion, deep merging and argparse defaults.
"""

import argparse
import json
import logging
import tempfile
import unittest
from pathlib import Path

from mcm_vsphere.config.config_loader import Config
from mcm_vsphere.core.exceptions import Fatal

LOG = logging.getLogger("mcm_vsphere.test")


class TestConfigLoading(unittest.TestCase):
    """Test loading single config files"""

    def test_yaml_and_json(self):
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            y = td / "a.yaml"
            y.write_text("action: status\nprovider_spec:\n  datacenter: dc1\n", encoding="utf-8")
            j = td / "b.json"
            j.write_text(json.dumps({"action": "delete"}), encoding="utf-8")

            self.assertEqual(Config.load_file(LOG, y)["provider_spec"], {"datacenter": "dc1"})
            self.assertEqual(Config.load_file(LOG, j), {"action": "delete"})

    def test_empty_file_is_empty_mapping(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "empty.yaml"
            p.write_text("", encoding="utf-8")

            self.assertEqual(Config.load_file(LOG, p), {})

    def test_top_level_list_rejected(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "list.yaml"
            p.write_text("- a\n- b\n", encoding="utf-8")

            with self.assertRaises(Fatal) as ctx:
                Config.load_file(LOG, p)
            self.assertIn("mapping", str(ctx.exception))

    def test_broken_yaml(self):
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "bad.yaml"
            p.write_text("a: [1, 2\n", encoding="utf-8")

            with self.assertRaises(Fatal) as ctx:
                Config.load_file(LOG, p)
            self.assertIsNotNone(ctx.exception.cause)


class TestConfigExpansion(unittest.TestCase):
    """Test glob expansion and merge order"""

    def test_glob_sorted_and_merged(self):
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            (td / "10-base.yaml").write_text(
                "action: status\nprovider_spec:\n  datacenter: dc1\n  numCpus: 2\n", encoding="utf-8"
            )
            (td / "20-over.yaml").write_text("provider_spec:\n  numCpus: 4\n", encoding="utf-8")

            paths = Config.expand_configs(LOG, [str(td / "*.yaml")])
            merged = Config.load_many(LOG, paths)

            self.assertEqual([p.name for p in paths], ["10-base.yaml", "20-over.yaml"])
            self.assertEqual(merged["provider_spec"], {"datacenter": "dc1", "numCpus": 4})
            self.assertEqual(merged["action"], "status")

    def test_unmatched_pattern(self):
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(Fatal):
                Config.expand_configs(LOG, [str(Path(td) / "*.yaml")])

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(Fatal):
                Config.expand_configs(LOG, [str(Path(td) / "nope.yaml")])


class TestApplyAsDefaults(unittest.TestCase):
    def test_known_keys_become_defaults(self):
        parser = argparse.ArgumentParser()
        parser.add_argument("--machine-name", dest="machine_name", default=None)
        parser.add_argument("--timeout", type=float, default=None)

        Config.apply_as_defaults(
            LOG, parser, {"machine-name": "worker-0", "timeout": 5, "provider_spec": {"x": 1}}
        )
        args = parser.parse_args([])

        self.assertEqual(args.machine_name, "worker-0")
        self.assertEqual(args.timeout, 5)
        self.assertFalse(hasattr(args, "provider_spec"))

    def test_cli_wins(self):
        parser = argparse.ArgumentParser()
        parser.add_argument("--machine-name", dest="machine_name", default=None)

        Config.apply_as_defaults(LOG, parser, {"machine_name": "from-config"})
        args = parser.parse_args(["--machine-name", "from-cli"])

        self.assertEqual(args.machine_name, "from-cli")


if __name__ == "__main__":
    unittest.main()
