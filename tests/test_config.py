import os
import shutil
import tempfile
import unittest
from pathlib import Path

from pystitch.config import StitchConfig, find_project_root
from pystitch.core.exceptions import ConfigError
from pystitch.runtime.composer import TreeComposer
from pystitch.core.registry import RendererRegistry


class TestConfig(unittest.TestCase):
    def setUp(self) -> None:
        self.test_dir = tempfile.mkdtemp()
        self.tmp_path = Path(self.test_dir).resolve()

    def tearDown(self) -> None:
        shutil.rmtree(self.test_dir)

    def test_default_config(self) -> None:
        config = StitchConfig()
        self.assertEqual(config.parser, "xml")
        self.assertEqual(config.slot_tag, "slot")
        self.assertEqual(config.discard_policy, "drop")
        self.assertIsNone(config.render_timeout)
        self.assertIsNone(config.components_dir)
        self.assertFalse(config.debug)

    def test_load_from_pyproject(self) -> None:
        (self.tmp_path / "pyproject.toml").write_text(
            "[tool.pystitch]\n"
            'components-dir = "components"\n'
            'parser = "html"\n'
            'slot_tag = "content"\n'
            "render-timeout = 5\n"
            'discard-policy = "compose"\n'
            "debug = true\n"
        )

        config = StitchConfig.load(self.tmp_path)

        self.assertEqual(config.components_dir, self.tmp_path / "components")
        self.assertEqual(config.parser, "html")
        self.assertEqual(config.slot_tag, "content")
        self.assertEqual(config.render_timeout, 5.0)
        self.assertEqual(config.discard_policy, "compose")
        self.assertTrue(config.debug)

    def test_missing_table_gives_defaults(self) -> None:
        (self.tmp_path / "pyproject.toml").write_text('[project]\nname = "site"\n')
        self.assertEqual(StitchConfig.load(self.tmp_path), StitchConfig())

    def test_no_pyproject_gives_defaults(self) -> None:
        self.assertEqual(StitchConfig.load(self.tmp_path), StitchConfig())

    def test_invalid_toml(self) -> None:
        (self.tmp_path / "pyproject.toml").write_text("[tool.pystitch\n")
        with self.assertRaises(ConfigError):
            StitchConfig.load(self.tmp_path)

    def test_invalid_values(self) -> None:
        with self.assertRaises(ConfigError):
            StitchConfig.from_dict({"colour": "blue"})
        with self.assertRaises(ConfigError):
            StitchConfig.from_dict({"parser": "yaml"})
        with self.assertRaises(ConfigError):
            StitchConfig.from_dict({"discard_policy": "keep"})
        with self.assertRaises(ConfigError):
            StitchConfig.from_dict({"render_timeout": "soon"})
        with self.assertRaises(ConfigError):
            StitchConfig.from_dict({"render_timeout": -1})

    def test_absolute_components_dir_kept(self) -> None:
        config = StitchConfig.from_dict(
            {"components_dir": str(self.tmp_path / "abs")}, base_dir=Path("/elsewhere")
        )
        self.assertEqual(config.components_dir, self.tmp_path / "abs")

    def test_override_skips_none(self) -> None:
        config = StitchConfig(parser="html").override(parser=None, slot_tag="content")
        self.assertEqual(config.parser, "html")
        self.assertEqual(config.slot_tag, "content")

    def test_find_project_root(self) -> None:
        nested = self.tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        (self.tmp_path / "pyproject.toml").touch()
        self.assertEqual(find_project_root(nested), self.tmp_path)

    def test_load_discovers_root_from_cwd(self) -> None:
        nested = self.tmp_path / "pages"
        nested.mkdir()
        (self.tmp_path / "pyproject.toml").write_text('[tool.pystitch]\nslot-tag = "x-slot"\n')

        cwd = os.getcwd()
        os.chdir(nested)
        try:
            config = StitchConfig.load()
        finally:
            os.chdir(cwd)

        self.assertEqual(config.slot_tag, "x-slot")

    def test_composer_from_config(self) -> None:
        config = StitchConfig(parser="html", slot_tag="Content", render_timeout=2.5)
        composer = TreeComposer.from_config(config, RendererRegistry())
        self.assertEqual(composer.parser.name, "html")
        self.assertEqual(composer.slot_tag, "content")
        self.assertEqual(composer.render_timeout, 2.5)


if __name__ == "__main__":
    unittest.main()
