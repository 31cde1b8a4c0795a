import os
import tempfile
import unittest

from mediaservice.config import load_config
from mediaservice.errors import ConfigError

VALID = """
db_filepath: data/media.db
server:
  port: 8080
  shutdown_timeout: 5
service:
  channel_size: 10
  workers: 2
  attempts: 3
  output_dir: downloads
cache_manager:
  size: 100
  expiration: 60
"""


class LoadConfigTest(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, content):
        path = os.path.join(self.tmp.name, "config.yml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_valid_config(self):
        cfg = load_config(self.write(VALID))
        self.assertEqual(cfg.db_filepath, "data/media.db")
        self.assertEqual(cfg.server.port, 8080)
        self.assertEqual(cfg.server.shutdown_timeout, 5)
        self.assertEqual(cfg.service.workers, 2)
        self.assertEqual(cfg.service.attempts, 3)
        self.assertEqual(cfg.service.output_dir, "downloads")
        self.assertEqual(cfg.cache_manager.size, 100)
        self.assertEqual(cfg.cache_manager.expiration, 60)
        self.assertIsNone(cfg.log_file)

    def test_shipped_sample_config_is_valid(self):
        root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        cfg = load_config(os.path.join(root, "cfg", "config.yml"))
        self.assertGreaterEqual(cfg.service.attempts, 1)

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_config(os.path.join(self.tmp.name, "nope.yml"))

    def test_bad_yaml(self):
        with self.assertRaises(ConfigError):
            load_config(self.write("server: [unclosed"))

    def test_missing_section(self):
        with self.assertRaises(ConfigError) as cm:
            load_config(self.write(VALID.replace("cache_manager:", "other:")))
        self.assertIn("cache_manager", str(cm.exception))

    def test_attempts_must_be_positive(self):
        with self.assertRaises(ConfigError):
            load_config(self.write(VALID.replace("attempts: 3", "attempts: 0")))

    def test_port_zero_is_accepted(self):
        cfg = load_config(self.write(VALID.replace("port: 8080", "port: 0")))
        self.assertEqual(cfg.server.port, 0)

    def test_negative_port_rejected(self):
        with self.assertRaises(ConfigError):
            load_config(self.write(VALID.replace("port: 8080", "port: -1")))

    def test_non_integer_value(self):
        with self.assertRaises(ConfigError):
            load_config(self.write(VALID.replace("workers: 2", "workers: many")))


if __name__ == "__main__":
    unittest.main()
