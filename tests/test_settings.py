import tempfile
import unittest
from pathlib import Path

from ensight.services.errors import ConfigError
from ensight.settings import Settings, load_settings


class LoadSettingsTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, text: str) -> Path:
        path = self.tmp / "ensight.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults(self):
        settings = load_settings(environ={})
        self.assertIsNone(settings.redis_url)
        self.assertEqual(settings.rpc_url, "https://eth.llamarpc.com")
        self.assertEqual(settings.cache.ttl_seconds, 300)
        self.assertEqual(settings.cache.max_entries, 10000)
        self.assertEqual(settings.model_dump(), Settings().model_dump())

    def test_yaml_file(self):
        path = self.write(
            "redis_url: redis://cache:6379/1\n"
            "store_timeout_seconds: 2.5\n"
            "cache:\n"
            "  ttl_seconds: 60\n"
            "  max_entries: 50\n"
        )
        settings = load_settings(path, environ={})
        self.assertEqual(settings.redis_url, "redis://cache:6379/1")
        self.assertEqual(settings.store_timeout_seconds, 2.5)
        self.assertEqual(settings.cache.ttl_seconds, 60)
        self.assertEqual(settings.cache.max_entries, 50)

    def test_config_path_from_env(self):
        path = self.write("rpc_url: http://localhost:8545\n")
        settings = load_settings(environ={"ENSIGHT_CONFIG": str(path)})
        self.assertEqual(settings.rpc_url, "http://localhost:8545")

    def test_env_overrides_file(self):
        path = self.write("redis_url: redis://file:6379/0\ncache:\n  max_entries: 50\n")
        settings = load_settings(path, environ={
            "ENSIGHT_REDIS_URL": "redis://env:6379/0",
            "ENSIGHT_CACHE_MAX_ENTRIES": "7",
            "ENSIGHT_CACHE_TTL_SECONDS": "0.05",
        })
        self.assertEqual(settings.redis_url, "redis://env:6379/0")
        self.assertEqual(settings.cache.max_entries, 7)
        self.assertEqual(settings.cache.ttl_seconds, 0.05)

    def test_fallback_env_names(self):
        settings = load_settings(environ={"REDIS_URL": "redis://plain:6379/0", "RPC_URL": "http://rpc"})
        self.assertEqual(settings.redis_url, "redis://plain:6379/0")
        self.assertEqual(settings.rpc_url, "http://rpc")

    def test_empty_env_values_ignored(self):
        settings = load_settings(environ={"ENSIGHT_REDIS_URL": "", "REDIS_URL": ""})
        self.assertIsNone(settings.redis_url)

    def test_empty_file(self):
        self.assertEqual(load_settings(self.write(""), environ={}).model_dump(), Settings().model_dump())

    def test_invalid_values(self):
        with self.assertRaises(ConfigError):
            load_settings(environ={"ENSIGHT_CACHE_MAX_ENTRIES": "zero"})
        with self.assertRaises(ConfigError):
            load_settings(self.write("cache:\n  ttl_seconds: -1\n"), environ={})

    def test_invalid_yaml(self):
        with self.assertRaises(ConfigError):
            load_settings(self.write("cache: [unclosed\n"), environ={})
        with self.assertRaises(ConfigError):
            load_settings(self.write("- just\n- a list\n"), environ={})

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_settings(self.tmp / "nope.yaml", environ={})


if __name__ == "__main__":
    unittest.main()
