import io
import sys
import tempfile
import unittest
import urllib.error
from pathlib import Path
from unittest import mock

from PIL import Image

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "display_protocol"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from cactuspi_renderer import AssetResolutionError, AssetStore, RenderError


def _png_bytes(size, color, mode="RGB"):
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format="PNG")
    return buf.getvalue()


class AssetStoreLoadTests(unittest.TestCase):
    def test_loads_images_by_stem(self):
        with tempfile.TemporaryDirectory() as tmp:
            Image.new("RGB", (12, 32), (0, 255, 0)).save(Path(tmp) / "green-light.png")
            Image.new("RGBA", (10, 32), (255, 0, 0, 0)).save(Path(tmp) / "thermometer.png")
            (Path(tmp) / "notes.txt").write_text("ignored", encoding="utf-8")
            (Path(tmp) / "broken.png").write_bytes(b"not a png")
            store = AssetStore.load(Path(tmp))

        self.assertEqual(store.keys(), ["green-light", "thermometer"])
        light = store.get("green-light")
        self.assertEqual((light.width, light.height), (12, 32))
        # Fully transparent pixels flatten to the panel's black.
        self.assertEqual(set(store.get("thermometer").bytes), {0})

    def test_bundled_assets(self):
        store = AssetStore.load(ROOT / "assets")
        for key in ("green-light", "yellow-light", "red-light", "thermometer"):
            self.assertIn(key, store.keys())
        self.assertEqual(store.get("thermometer").width, 10)
        self.assertEqual(store.get("red-light").height, 32)

    def test_missing_directory_gives_empty_store(self):
        store = AssetStore.load(Path("/nonexistent/cactuspi/assets"))
        self.assertEqual(store.keys(), [])

    def test_unknown_key(self):
        with self.assertRaises(AssetResolutionError):
            AssetStore().get("blue-light")

    def test_missing_font_surfaces_at_render_time(self):
        with tempfile.TemporaryDirectory() as tmp:
            store = AssetStore.load(Path(tmp), font_path=Path(tmp) / "Agane_55.ttf")
        with self.assertRaises(RenderError):
            store.font(12)

    def test_default_font(self):
        font = AssetStore().font(9.5)
        self.assertIsNotNone(font.getbbox("US:1"))


class AssetStoreResolveTests(unittest.TestCase):
    def test_resolve_local_key_with_resize(self):
        with tempfile.TemporaryDirectory() as tmp:
            Image.new("RGB", (50, 50), (1, 2, 3)).save(Path(tmp) / "sun.png")
            store = AssetStore.load(Path(tmp))
        icon = store.resolve("sun", size=(36, 36))
        self.assertEqual((icon.width, icon.height), (36, 36))
        self.assertIs(store.resolve("sun"), store.get("sun"))

    def test_fetch_remote_icon(self):
        payload = _png_bytes((100, 100), (200, 10, 10))
        with mock.patch("urllib.request.urlopen", return_value=io.BytesIO(payload)) as urlopen:
            icon = AssetStore(fetch_timeout_s=3).resolve("http://openweathermap.org/img/wn/10d@2x.png", size=(36, 36))
        urlopen.assert_called_once_with("http://openweathermap.org/img/wn/10d@2x.png", timeout=3)
        self.assertEqual((icon.width, icon.height), (36, 36))
        self.assertEqual(icon.key, "http://openweathermap.org/img/wn/10d@2x.png")

    def test_dark_night_icons_are_inverted(self):
        payload = _png_bytes((36, 36), (255, 255, 255))
        with mock.patch("urllib.request.urlopen", return_value=io.BytesIO(payload)):
            icon = AssetStore().fetch("http://openweathermap.org/img/wn/01n.png")
        self.assertEqual(set(icon.bytes), {0})

    def test_fetch_failure_is_resolution_error(self):
        with mock.patch("urllib.request.urlopen", side_effect=urllib.error.URLError("offline")):
            with self.assertRaises(AssetResolutionError):
                AssetStore().resolve("https://example.invalid/icon.png")

    def test_undecodable_icon_is_resolution_error(self):
        with mock.patch("urllib.request.urlopen", return_value=io.BytesIO(b"<html>")):
            with self.assertRaises(AssetResolutionError):
                AssetStore().resolve("https://example.invalid/icon.png")


if __name__ == "__main__":
    unittest.main()
