import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "display"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "display_protocol"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from PIL import Image

from cactuspi_app.cli import _matrix_config, build_parser, cmd_render, cmd_show


class CliTests(unittest.TestCase):
    def test_run_command_defaults(self):
        args = build_parser().parse_args(["run"])
        self.assertEqual(args.command, "run")
        self.assertEqual(args.led_rows, 32)
        self.assertEqual(args.led_chain, 2)
        self.assertEqual(args.brightness, 90)
        self.assertTrue(args.led_no_hardware_pulse)
        self.assertEqual(args.config, str(Path("configs") / "pubnub.json"))

    def test_device_flags(self):
        args = build_parser().parse_args(
            ["run", "--led-hardware-pulse", "--rotate", "180", "--led-inverse", "--pwm-bits", "7", "--brightness", "120"]
        )
        cfg = _matrix_config(args)
        self.assertFalse(cfg.disable_hardware_pulsing)
        self.assertEqual(cfg.rotation, 180)
        self.assertTrue(cfg.inverse_colors)
        self.assertEqual(cfg.pwm_bits, 7)
        self.assertEqual(cfg.brightness, 100)

    def test_rejects_odd_rotation(self):
        with redirect_stdout(io.StringIO()), self.assertRaises(SystemExit):
            build_parser().parse_args(["run", "--rotate", "45"])

    def test_render_writes_frame(self):
        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "utf8text.png"
            args = build_parser().parse_args(
                ["render", "--kind", "covid", "--payload", "120,58,34000,9000000", "--out", str(out), "--assets", str(ROOT / "assets")]
            )
            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = cmd_render(args)
            self.assertEqual(rc, 0)
            with Image.open(out) as img:
                self.assertEqual(img.size, (64, 32))
        payload = json.loads(buf.getvalue())
        self.assertEqual(payload["lines"], ["US:34000", "NY:120"])
        self.assertEqual(payload["overlay"], "thermometer")

    def test_render_unknown_kind(self):
        args = build_parser().parse_args(["render", "--kind", "stocks", "--payload", "x"])
        buf = io.StringIO()
        with redirect_stdout(buf):
            rc = cmd_render(args)
        self.assertEqual(rc, 2)
        self.assertIn("UnsupportedMessageKind", json.loads(buf.getvalue())["error"])

    def test_show_dry_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            image = Path(tmp) / "in.png"
            preview = Path(tmp) / "panel.png"
            Image.new("RGB", (64, 32), (0, 0, 255)).save(image)
            args = build_parser().parse_args(
                ["show", "--image", str(image), "--duration", "0", "--dry-run", str(preview), "--rotate", "180"]
            )
            buf = io.StringIO()
            with redirect_stdout(buf):
                rc = cmd_show(args)
            self.assertEqual(rc, 0)
            self.assertTrue(preview.exists())
        payload = json.loads(buf.getvalue())
        self.assertTrue(payload["completed"])
        self.assertEqual(payload["events"][-1]["event"], "session_close")


if __name__ == "__main__":
    unittest.main()
