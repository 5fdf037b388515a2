import pytest

from nspi_fill.config import FillConfig, load_config


def test_defaults_when_no_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config()
    assert cfg == FillConfig()
    assert cfg.nspi.num_class == 4
    assert cfg.nspi.min_pixel == 20
    assert cfg.nspi.cloud_nbh == 10
    assert cfg.nspi.similarity_reference == "loop_index"
    assert cfg.execution.max_workers == 1


def test_partial_overlay(tmp_path):
    path = tmp_path / "fill.yaml"
    path.write_text(
        "nspi:\n"
        "  min_pixel: 30\n"
        "  dn_max: 10000\n"
        "  similarity_reference: target\n"
        "execution:\n"
        "  max_workers: 4\n"
        "report_dir: reports\n"
    )
    cfg = load_config(str(path))
    assert cfg.nspi.min_pixel == 30
    assert cfg.nspi.dn_max == 10000.0
    assert cfg.nspi.similarity_reference == "target"
    assert cfg.nspi.num_class == 4
    assert cfg.execution.max_workers == 4
    assert cfg.report_dir == "reports"


def test_default_location(tmp_path, monkeypatch):
    (tmp_path / "nspi.yaml").write_text("nspi:\n  cloud_nbh: 3\n")
    monkeypatch.chdir(tmp_path)
    assert load_config().nspi.cloud_nbh == 3


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(str(path)) == FillConfig()


def test_bad_section(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("nspi: 5\n")
    with pytest.raises(ValueError, match="nspi"):
        load_config(str(path))
