import pytest

from mold.discovery import DiscoveryError, discover, locate_file


def test_discover_walks_up(tmp_path):
    root = tmp_path / "moldfile"
    root.write_text("", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert discover(nested) == root.resolve()


def test_discover_checks_both_names_in_each_directory(tmp_path):
    (tmp_path / "moldfile").write_text("", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "Moldfile").write_text("", encoding="utf-8")
    assert discover(tmp_path / "sub") == (tmp_path / "sub" / "Moldfile").resolve()
    assert discover(tmp_path) == (tmp_path / "moldfile").resolve()


def test_explicit_file(tmp_path):
    (tmp_path / "tasks.mold").write_text("", encoding="utf-8")
    (tmp_path / "deeper").mkdir()
    assert discover(tmp_path / "deeper", "tasks.mold") == (tmp_path / "tasks.mold").resolve()
    absolute = tmp_path / "tasks.mold"
    assert locate_file(absolute) == absolute


def test_missing_file(tmp_path):
    with pytest.raises(DiscoveryError):
        locate_file(tmp_path / "nope.mold")
    with pytest.raises(DiscoveryError):
        discover(tmp_path, "nope.mold")
