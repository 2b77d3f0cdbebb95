# tests/test_config.py
import pytest
import yaml

from arcoutput.config import AppConfig, ConfigError, ParserConfig, load_config


class TestLoadConfig:
    def test_loads_valid_config(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({
            "parser": {
                "queue_size": 8,
                "extra_envelope_types": {"phutil:warn": "warning"},
            },
            "output": {
                "color": True,
                "success_message": "Revision updated",
                "failure_message": "Failed publishing your revision",
            },
            "debug": {"enabled": True},
        }))
        config = load_config(str(config_file))
        assert config.parser.queue_size == 8
        assert config.parser.extra_envelope_types == {"phutil:warn": "warning"}
        assert config.output.color is True
        assert config.output.success_message == "Revision updated"
        assert config.output.failure_message == "Failed publishing your revision"
        assert config.debug.enabled is True

    def test_loads_trace_settings(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"debug": {"trace": True, "verbose": True}}))
        config = load_config(str(config_file))
        assert config.debug.enabled is False
        assert config.debug.trace is True
        assert config.debug.verbose is True

    def test_missing_file_raises(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config("/nonexistent/config.yaml")

    def test_empty_file_uses_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        config = load_config(str(config_file))
        assert config == AppConfig()

    def test_null_sections_use_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("parser:\noutput:\ndebug:\n")
        config = load_config(str(config_file))
        assert config.parser.queue_size == 64
        assert config.output.failure_message == "Command failed"
        assert config.debug.enabled is False

    def test_non_mapping_root_raises(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(config_file))

    def test_invalid_yaml_raises(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("parser: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(str(config_file))

    @pytest.mark.parametrize("size", [0, -3, "big"])
    def test_bad_queue_size_raises(self, tmp_path, size):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"parser": {"queue_size": size}}))
        with pytest.raises(ConfigError, match="queue_size"):
            load_config(str(config_file))

    def test_bad_envelope_types_raises(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"parser": {"extra_envelope_types": ["phutil:warn"]}}))
        with pytest.raises(ConfigError, match="extra_envelope_types"):
            load_config(str(config_file))


class TestParserConfig:
    def test_builtin_types(self):
        types = ParserConfig().envelope_types()
        assert types["phutil:out"] == "log"
        assert types["phutil:err"] == "error"
        assert types["error"] == "error"

    def test_extras_merge_and_override(self):
        types = ParserConfig(extra_envelope_types={"phutil:warn": "warning", "phutil:out:raw": "raw"}).envelope_types()
        assert types["phutil:warn"] == "warning"
        assert types["phutil:out:raw"] == "raw"
        assert types["phutil:out"] == "log"
