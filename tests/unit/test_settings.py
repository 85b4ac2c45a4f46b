import pytest
from pydantic import ValidationError

from pdf_sanitizer.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_enabled_by_default(self) -> None:
        s = Settings()
        assert s.enabled is True

    def test_default_pdf_engine(self) -> None:
        s = Settings()
        assert s.pdf_engine == "pymupdf"

    def test_default_render_options(self) -> None:
        s = Settings()
        assert s.scale == 1.5
        assert s.quality == 0.85

    def test_caps_unset_by_default(self) -> None:
        s = Settings()
        assert s.max_file_size_mb is None
        assert s.max_pages is None

    def test_progress_and_logging_on(self) -> None:
        s = Settings()
        assert s.show_progress is True
        assert s.log_errors is True

    def test_default_upload_patterns(self) -> None:
        s = Settings()
        assert "/livewire/upload-file" in s.upload_url_patterns


class TestSettingsFromEnv:
    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_scale(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCALE", "2.0")
        s = Settings()
        assert s.scale == 2.0

    def test_loads_max_pages(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_PAGES", "10")
        s = Settings()
        assert s.max_pages == 10

    def test_loads_enabled_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLED", "false")
        s = Settings()
        assert s.enabled is False

    def test_loads_url_patterns_as_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("UPLOAD_URL_PATTERNS", '["/upload"]')
        s = Settings()
        assert s.upload_url_patterns == ["/upload"]


class TestSettingsValidation:
    def test_zero_scale_raises(self) -> None:
        with pytest.raises(ValidationError):
            Settings(scale=0)

    def test_quality_above_one_raises(self) -> None:
        with pytest.raises(ValidationError):
            Settings(quality=1.5)

    def test_quality_of_one_is_allowed(self) -> None:
        assert Settings(quality=1.0).quality == 1.0

    def test_zero_quality_raises(self) -> None:
        with pytest.raises(ValidationError):
            Settings(quality=0)

    def test_negative_max_pages_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_PAGES", "-1")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_max_file_size_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_FILE_SIZE_MB", "abc")
        with pytest.raises(ValidationError):
            Settings()
