"""Unit tests for ConfigManager and ServicePreferences."""

from eventmap.core.config_manager import ConfigManager
from eventmap.core.preferences import ServicePreferences
from tests.conftest import run_async

SAMPLE = """# map settings
initial_zoom = 12
api_host = "127.0.0.1"   # quoted
storage_key = 'custom_key'
not a setting

follow_location = true
"""


class TestParsing:

    def test_comments_and_quotes(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text(SAMPLE, encoding="utf-8")

        config = ConfigManager().read_config(path)

        assert config == {
            "initial_zoom": "12",
            "api_host": "127.0.0.1",
            "storage_key": "custom_key",
            "follow_location": "true",
        }

    def test_missing_file_is_empty(self, tmp_path):
        assert ConfigManager().read_config(tmp_path / "absent.txt") == {}

    def test_async_read_matches_sync(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text(SAMPLE, encoding="utf-8")
        manager = ConfigManager()
        assert run_async(manager.read_config_async(path)) == manager.read_config(path)


class TestWriting:

    def test_updates_in_place_and_appends(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text(SAMPLE, encoding="utf-8")
        manager = ConfigManager()

        assert manager.write_config(path, {"initial_zoom": 9, "nearby_radius_km": 2.5})

        text = path.read_text(encoding="utf-8")
        assert "# map settings" in text
        assert "initial_zoom = 9\n" in text
        assert text.endswith("nearby_radius_km = 2.5\n")
        assert text.count("initial_zoom") == 1

    def test_bools_written_lowercase(self, tmp_path):
        path = tmp_path / "config.txt"
        ConfigManager().write_config(path, {"follow_location": False})
        assert path.read_text(encoding="utf-8") == "follow_location = false\n"

    def test_async_write_creates_file(self, tmp_path):
        path = tmp_path / "sub" / "config.txt"
        manager = ConfigManager()
        assert run_async(manager.write_config_async(path, {"api_port": 9000}))
        assert manager.read_config(path) == {"api_port": "9000"}


class TestServicePreferences:

    def test_reads_file(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text(SAMPLE, encoding="utf-8")
        prefs = ServicePreferences(path)
        assert prefs.get("initial_zoom") == "12"
        assert prefs.get("missing", "x") == "x"
        assert prefs.config_path == path

    def test_write_sync_updates_cache_and_file(self, tmp_path):
        path = tmp_path / "config.txt"
        prefs = ServicePreferences(path)
        assert prefs.write_sync({"enable_clustering": True})
        assert prefs.get("enable_clustering") == "true"
        assert ServicePreferences(path).get("enable_clustering") == "true"

    def test_reload_async_picks_up_external_edit(self, tmp_path):
        path = tmp_path / "config.txt"
        path.write_text("initial_zoom = 5\n", encoding="utf-8")
        prefs = ServicePreferences(path)
        path.write_text("initial_zoom = 6\n", encoding="utf-8")

        snapshot = run_async(prefs.reload_async())

        assert snapshot == {"initial_zoom": "6"}
        assert prefs.get("initial_zoom") == "6"

    def test_in_memory_preferences(self):
        prefs = ServicePreferences(initial_data={"a": "1"})
        assert run_async(prefs.write_async({"b": 2}))
        assert prefs.snapshot() == {"a": "1", "b": "2"}
        assert prefs.config_path is None
