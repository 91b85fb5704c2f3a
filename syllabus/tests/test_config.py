from pathlib import Path

from syllabus.config import Settings


def test_defaults_resolve_against_project_root():
    cfg = Settings()
    assert cfg.output_dir.is_absolute()
    assert cfg.data_dir == cfg.project_root / "data" / "syllabi"
    assert cfg.fields_yaml.name == "fields.yaml"
    assert cfg.fields_yaml.exists()
    assert cfg.ocr_dpi == 400
    assert cfg.ocr_lang == "eng"
    assert cfg.output_dir_extract == cfg.output_dir / "extract"


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SYLLABUS_OUTPUT", str(tmp_path / "out"))
    monkeypatch.setenv("SYLLABUS_OCR_DPI", "200")
    monkeypatch.setenv("SYLLABUS_OCR_LANG", "eng+deu")
    monkeypatch.setenv("SYLLABUS_TESSERACT_CMD", "  ")
    cfg = Settings()
    assert cfg.output_dir == tmp_path / "out"
    assert cfg.ocr_dpi == 200
    assert cfg.ocr_lang == "eng+deu"
    assert cfg.tesseract_cmd is None


def test_relative_env_path_is_made_absolute(monkeypatch):
    monkeypatch.setenv("SYLLABUS_DATA", "pdfs")
    cfg = Settings()
    assert cfg.data_dir == (cfg.project_root / Path("pdfs")).resolve()
