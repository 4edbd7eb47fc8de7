"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for tracker configs.
"""

import os
import tempfile

import pytest
import yaml

from pirs.config.loader import (
    ExportConfig,
    StorageConfig,
    TrackerConfig,
    default_config,
    load_tracker_config
)
from pirs.core.classifier import COMMAND_GROUPS, DEFAULT_RUNNERS


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        config_path = self._write_config({
            "storage": {"db_path": "data/pirs.db"},
            "export": {"directory": "exports"},
            "classifier": {
                "runners": ["pipx"],
                "groups": [
                    {"name": "tests", "patterns": ["pytest", "tox"]},
                    {"name": "vcs", "patterns": ["git "]},
                ]
            }
        })

        config = load_tracker_config(config_path)

        assert config.storage.db_path == "data/pirs.db"
        assert config.export.directory == "exports"
        assert config.runners == ("pipx",)
        assert config.groups == (("tests", ("pytest", "tox")), ("vcs", ("git ",)))

        classifier = config.build_classifier()
        assert classifier.classify("tox -e py312") == "tests"
        assert classifier.classify("git status") == "vcs"
        assert classifier.classify("pipx run black") == "pipx run"
        assert classifier.classify("npx prettier") == "other"

    def test_sections_optional(self):
        """Test that omitted sections use defaults."""
        config = load_tracker_config(self._write_config({"storage": {"db_path": "x.db"}}))
        assert config.storage.db_path == "x.db"
        assert config.export.directory == ".pi"
        assert config.groups == COMMAND_GROUPS
        assert config.runners == DEFAULT_RUNNERS

    def test_group_order_preserved(self):
        """Test that group order follows the YAML list order."""
        config = load_tracker_config(self._write_config({
            "classifier": {"groups": [
                {"name": "generic", "patterns": ["npm "]},
                {"name": "install", "patterns": ["npm install"]},
            ]}
        }))
        assert config.build_classifier().classify("npm install") == "generic"

    def test_default_config(self):
        """Test built-in defaults."""
        config = default_config()
        assert isinstance(config, TrackerConfig)
        assert config.storage.db_path == ".pi/pirs.db"
        assert config.export.directory == ".pi"
        assert config.build_classifier().classify("npm run build") == "npm run"

    def test_missing_file(self):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Tracker config file not found"):
            load_tracker_config(os.path.join(self.temp_dir, "nope.yaml"))

    def test_invalid_yaml(self):
        """Test that invalid YAML raises YAMLError."""
        config_path = os.path.join(self.temp_dir, "bad.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("storage: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_tracker_config(config_path)

    def test_empty_file(self):
        """Test that an empty file is rejected."""
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        open(config_path, 'w').close()
        with pytest.raises(ValueError, match="Configuration file is empty"):
            load_tracker_config(config_path)

    def test_non_dict_config(self):
        """Test that a top-level list is rejected."""
        with pytest.raises(ValueError, match="Configuration must be a dictionary"):
            load_tracker_config(self._write_config(["storage"]))

    def test_unknown_top_level_key(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_tracker_config(self._write_config({"storag": {}}))

    def test_unknown_section_key(self):
        """Test that unknown section keys are rejected."""
        with pytest.raises(ValueError, match="Unknown storage keys"):
            load_tracker_config(self._write_config({"storage": {"path": "x.db"}}))

    def test_section_must_be_dict(self):
        """Test that sections must be dictionaries."""
        with pytest.raises(ValueError, match="'export' must be a dictionary"):
            load_tracker_config(self._write_config({"export": "dir"}))

    def test_empty_db_path(self):
        """Test that an empty database path is rejected."""
        with pytest.raises(ValueError, match="db_path cannot be empty"):
            load_tracker_config(self._write_config({"storage": {"db_path": "  "}}))

    def test_groups_must_be_list(self):
        """Test that groups must be a non-empty list."""
        with pytest.raises(ValueError, match="must be a non-empty list"):
            load_tracker_config(self._write_config({"classifier": {"groups": {"a": ["b"]}}}))

    def test_group_missing_name(self):
        """Test that each group needs a name."""
        with pytest.raises(ValueError, match="'name' in classifier.groups\\[0\\]"):
            load_tracker_config(self._write_config({"classifier": {"groups": [{"patterns": ["x"]}]}}))

    def test_group_empty_patterns(self):
        """Test that each group needs patterns."""
        with pytest.raises(ValueError, match="'patterns' in classifier.groups\\[1\\]"):
            load_tracker_config(self._write_config({"classifier": {"groups": [
                {"name": "a", "patterns": ["a"]},
                {"name": "b", "patterns": []},
            ]}}))

    def test_group_pattern_types(self):
        """Test that patterns must be non-empty strings."""
        with pytest.raises(ValueError, match="must contain non-empty strings"):
            load_tracker_config(self._write_config({"classifier": {"groups": [
                {"name": "a", "patterns": ["a", 3]},
            ]}}))

    def test_duplicate_group_name(self):
        """Test that group names must be unique."""
        with pytest.raises(ValueError, match="Duplicate group name 'a'"):
            load_tracker_config(self._write_config({"classifier": {"groups": [
                {"name": "a", "patterns": ["x"]},
                {"name": "a", "patterns": ["y"]},
            ]}}))

    def test_unknown_group_key(self):
        """Test that unknown group keys are rejected."""
        with pytest.raises(ValueError, match="Unknown keys in classifier.groups\\[0\\]"):
            load_tracker_config(self._write_config({"classifier": {"groups": [
                {"name": "a", "patterns": ["x"], "priority": 1},
            ]}}))

    def test_invalid_runners(self):
        """Test runner validation."""
        with pytest.raises(ValueError, match="single-word strings"):
            load_tracker_config(self._write_config({"classifier": {"runners": ["npx", "npm exec"]}}))
        with pytest.raises(ValueError, match="'classifier.runners' must be a list"):
            load_tracker_config(self._write_config({"classifier": {"runners": "npx"}}))


class TestConfigModels:
    """Test configuration dataclass validation."""

    def test_storage_config_validation(self):
        """Test StorageConfig rejects empty paths."""
        with pytest.raises(ValueError, match="db_path cannot be empty"):
            StorageConfig(db_path="")

    def test_export_config_validation(self):
        """Test ExportConfig rejects empty directories."""
        with pytest.raises(ValueError, match="export directory cannot be empty"):
            ExportConfig(directory="")
