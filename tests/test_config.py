import os
import sys
import tempfile
import unittest

import yaml

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import YamlConfig, load_engine_settings, save_engine_settings
from settings_schema import DeloadPolicy, EngineSettings, validate_settings


class YamlConfigTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "settings.yaml")

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_missing_file_is_empty(self) -> None:
        self.assertEqual(YamlConfig(self.path).load(), {})
        settings = load_engine_settings(self.path)
        self.assertEqual(settings, EngineSettings())

    def test_save_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({"weight_unit": "kg", "theme": "dark"})
        self.assertEqual(cfg.load(), {"weight_unit": "kg", "theme": "dark"})

    def test_non_mapping_rejected(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("- 1\n- 2\n")
        with self.assertRaises(ValueError):
            YamlConfig(self.path).load()

    def test_policy_overrides(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                {
                    "weight_unit": "kg",
                    "deload": {"min_sessions": 6, "interval_intermediate": 42},
                    "forecast": {"min_r2": 0.5},
                    "theme": "dark",
                },
                f,
            )
        settings = load_engine_settings(self.path)
        self.assertEqual(settings.weight_unit, "kg")
        self.assertEqual(settings.deload.min_sessions, 6)
        self.assertEqual(settings.deload.interval_for("intermediate"), 42)
        self.assertEqual(settings.deload.interval_for("advanced"), 28)
        self.assertEqual(settings.forecast.min_r2, 0.5)
        self.assertEqual(settings.overload.deload_factor, 0.85)

    def test_invalid_settings(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump({"deload": {"min_sessions": "many"}}, f)
        with self.assertRaises(ValueError):
            load_engine_settings(self.path)
        with self.assertRaises(ValueError):
            validate_settings({"forecast": {"min_points": []}})

    def test_round_trip(self) -> None:
        original = EngineSettings(weight_unit="kg", deload=DeloadPolicy(min_sessions=5))
        save_engine_settings(original, self.path)
        self.assertEqual(load_engine_settings(self.path), original)


if __name__ == "__main__":
    unittest.main()
