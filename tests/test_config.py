from pathlib import Path

import pytest

from chunker.config import ChunkerConfig, default_config, load_config


def test_load_config_reads_every_key(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
window_size: 3
label_history_size: 1
classifier: log-odds
data_file_encoding: ISO-8859-1
verbose: true
svm:
  C: 0.5
log_odds:
  alpha: 0.25
""".strip(),
        encoding="utf-8",
    )

    cfg = load_config(str(config_path))

    assert cfg.window_size == 3
    assert cfg.label_history_size == 1
    assert cfg.classifier == "log-odds"
    assert cfg.data_file_encoding == "ISO-8859-1"
    assert cfg.verbose is True
    assert cfg.svm == {"C": 0.5}
    assert cfg.log_odds == {"alpha": 0.25}


def test_missing_keys_fall_back_to_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("window_size: 4\n", encoding="utf-8")

    cfg = load_config(str(config_path))

    assert cfg.window_size == 4
    assert cfg.label_history_size == 2
    assert cfg.classifier == "svm"
    assert cfg.data_file_encoding == "UTF-8"


def test_empty_file_is_the_default_config(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("", encoding="utf-8")

    assert load_config(str(config_path)) == default_config() == ChunkerConfig()


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


def test_invalid_yaml_raises_value_error(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("window_size: [1, 2\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(str(config_path))


def test_non_mapping_root_raises_type_error(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(TypeError):
        load_config(str(config_path))


def test_non_mapping_section_raises_type_error(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("svm: 3\n", encoding="utf-8")

    with pytest.raises(TypeError):
        load_config(str(config_path))


def test_negative_sizes_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("label_history_size: -1\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(str(config_path))
