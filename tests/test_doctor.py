"""Tests for pastelcut.doctor — diagnostic checks."""

from pastelcut import ffmpeg
from pastelcut.config import ENV_FPS
from pastelcut.doctor import run_doctor


class TestDoctor:
    def test_returns_structured_report(self):
        result = run_doctor()
        assert "healthy" in result
        assert "video_export" in result
        assert isinstance(result["checks"], list)

    def test_check_names_present(self):
        result = run_doctor()
        names = [c["name"] for c in result["checks"]]
        assert "config" in names
        assert "ffmpeg" in names
        assert "temp_directory" in names
        assert "env_vars" in names

    def test_each_check_has_ok_and_detail(self):
        result = run_doctor()
        for check in result["checks"]:
            assert "name" in check
            assert "ok" in check
            assert "detail" in check

    def test_temp_directory_is_writable(self):
        result = run_doctor()
        temp_check = next(c for c in result["checks"] if c["name"] == "temp_directory")
        assert temp_check["ok"] is True
        assert temp_check["detail"]["writable"] is True

    def test_healthy_without_ffmpeg_requirement(self):
        """ffmpeg only decides video_export, never overall health."""
        result = run_doctor()
        ffmpeg_ok = next(c for c in result["checks"] if c["name"] == "ffmpeg")["ok"]
        assert result["video_export"] is ffmpeg_ok
        assert result["healthy"] is True

    def test_bad_config_env_is_unhealthy(self, monkeypatch):
        monkeypatch.setenv(ENV_FPS, "fast")
        result = run_doctor()
        config_check = next(c for c in result["checks"] if c["name"] == "config")
        assert config_check["ok"] is False
        assert config_check["detail"]["error"]["code"] == "CONFIG_ERROR"
        assert result["healthy"] is False

    def test_reports_ffmpeg_source(self, monkeypatch, tmp_path):
        fake_bin = tmp_path / "ffmpeg"
        fake_bin.write_text("")
        monkeypatch.setattr(ffmpeg, "DISCOVERY_CHAIN", [("test dir", lambda: str(fake_bin))])
        ffmpeg.reset_cache()
        try:
            result = run_doctor()
        finally:
            ffmpeg.reset_cache()
        detail = next(c for c in result["checks"] if c["name"] == "ffmpeg")["detail"]
        assert detail["path"] == str(fake_bin)
        assert detail["source"] == "test dir"
        assert detail["version"] is None
        assert result["video_export"] is True
