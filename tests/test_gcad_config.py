"""
Unit tests for compiler configuration loading.
"""

import logging
import os
import tempfile
import unittest

from gcad_config import DEFAULT_LOG_FORMAT, CompilerConfig, load_config
from gcad_errors import ConfigError


class TestCompilerConfig(unittest.TestCase):
    """Test cases for CompilerConfig."""

    def test_defaults(self):
        """Test the default configuration."""
        config = CompilerConfig()
        self.assertTrue(config.builtin_materials)
        self.assertEqual(config.material_files, [])
        self.assertEqual(config.logging_level, logging.WARNING)
        self.assertEqual(config.log_format, DEFAULT_LOG_FORMAT)

    def test_from_dict(self):
        """Test building from a mapping."""
        config = CompilerConfig.from_dict(
            {"builtin_materials": False, "material_files": ["shop.gcad"], "log_level": "debug"}
        )
        self.assertFalse(config.builtin_materials)
        self.assertEqual(config.material_files, ["shop.gcad"])
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.logging_level, logging.DEBUG)

    def test_relative_material_files(self):
        """Test that material files are resolved against the base directory."""
        config = CompilerConfig.from_dict(
            {"material_files": ["shop.gcad", "/abs/wood.gcad"]}, base_dir="/configs"
        )
        self.assertEqual(config.material_files, [os.path.join("/configs", "shop.gcad"), "/abs/wood.gcad"])

    def test_invalid_values(self):
        """Test validation errors."""
        with self.assertRaises(ConfigError):
            CompilerConfig.from_dict({"colour": "red"})
        with self.assertRaises(ConfigError):
            CompilerConfig.from_dict({"builtin_materials": "yes"})
        with self.assertRaises(ConfigError):
            CompilerConfig.from_dict({"material_files": "shop.gcad"})
        with self.assertRaises(ConfigError):
            CompilerConfig.from_dict({"log_level": "LOUD"})
        with self.assertRaises(ConfigError):
            CompilerConfig.from_dict({"log_format": 3})
        with self.assertRaises(ConfigError):
            CompilerConfig.from_dict(["builtin_materials"])


class TestLoadConfig(unittest.TestCase):
    """Test cases for YAML configuration files."""

    def write_config(self, text):
        with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as f:
            f.write(text)
        self.addCleanup(os.unlink, f.name)
        return f.name

    def test_load(self):
        """Test loading a YAML file."""
        filename = self.write_config(
            "builtin_materials: false\n"
            "material_files:\n"
            "  - shop.gcad\n"
            "log_level: INFO\n"
        )
        config = load_config(filename)
        self.assertFalse(config.builtin_materials)
        self.assertEqual(
            config.material_files,
            [os.path.join(os.path.dirname(filename), "shop.gcad")],
        )
        self.assertEqual(config.logging_level, logging.INFO)

    def test_empty_file(self):
        """Test that an empty file gives the defaults."""
        config = load_config(self.write_config(""))
        self.assertTrue(config.builtin_materials)

    def test_missing_file(self):
        """Test a missing configuration file."""
        with self.assertRaises(ConfigError):
            load_config("/nonexistent/gcad.yaml")

    def test_malformed_yaml(self):
        """Test a file that is not valid YAML."""
        with self.assertRaises(ConfigError):
            load_config(self.write_config("material_files: [unclosed\n"))


if __name__ == "__main__":
    unittest.main()
