from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for paths, the field table and OCR.
    """

    model_config = SettingsConfigDict(
        env_prefix="",  # we provide explicit env names per field below
        extra="ignore",
        populate_by_name=True,
    )

    project_root: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parents[1]
    )

    data_dir: Path = Field(
        default=Path("data") / "syllabi", validation_alias="SYLLABUS_DATA"
    )
    output_dir: Path = Field(default=Path("artifacts"), validation_alias="SYLLABUS_OUTPUT")
    fields_yaml: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parent / "extract" / "fields.yaml",
        validation_alias="SYLLABUS_FIELDS",
    )

    ocr_dpi: int = Field(default=400, ge=50, le=1200, validation_alias="SYLLABUS_OCR_DPI")
    ocr_lang: str = Field(default="eng", validation_alias="SYLLABUS_OCR_LANG")
    tesseract_cmd: Optional[str] = Field(
        default=None, validation_alias="SYLLABUS_TESSERACT_CMD"
    )
    tmp_dir: Optional[Path] = Field(default=None, validation_alias="SYLLABUS_TMP")

    @field_validator("data_dir", "output_dir", "fields_yaml", "tmp_dir", mode="before")
    @classmethod
    def _coerce_path(cls, v):
        # Accept strings from env and coerce; allow Path passthrough.
        if v is None:
            return v
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return None
            return Path(s).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    @field_validator("tesseract_cmd", mode="before")
    @classmethod
    def _blank_cmd_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def output_dir_extract(self) -> Path:
        return self.output_dir / "extract"

    def model_post_init(self, __context) -> None:
        # Resolve relative paths against project_root
        if not self.data_dir.is_absolute():
            self.data_dir = (self.project_root / self.data_dir).resolve()
        if not self.output_dir.is_absolute():
            self.output_dir = (self.project_root / self.output_dir).resolve()
        if not self.fields_yaml.is_absolute():
            self.fields_yaml = (self.project_root / self.fields_yaml).resolve()


# Lazy singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
