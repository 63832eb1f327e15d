"""CLI entrypoints for the CactusPi panel: listen, render, show and doctor."""

from __future__ import annotations

import argparse
import json
import threading
from dataclasses import asdict
from pathlib import Path

from PIL import Image

from cactuspi_core import (
    MessageRouter,
    PipelineOrchestrator,
    build_doctor_payload,
    build_matrix_config,
    load_pubsub_config,
)
from cactuspi_core.config import DEFAULT_CONFIG_PATH
from cactuspi_core.errors import MESSAGE_ERRORS
from cactuspi_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from cactuspi_display import DeviceError, DisplaySessionManager, FileTransport, Frame, MatrixConfig, MatrixTransport
from cactuspi_renderer import AssetStore, FrameCompositor, save_frame


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _matrix_config(args: argparse.Namespace) -> MatrixConfig:
    return build_matrix_config(
        rows=args.led_rows,
        cols=args.led_cols,
        parallel=args.led_parallel,
        chain_length=args.led_chain,
        brightness=args.brightness,
        hardware_mapping=args.led_gpio_mapping,
        disable_hardware_pulsing=args.led_no_hardware_pulse,
        inverse_colors=args.led_inverse,
        pwm_bits=args.pwm_bits,
        pwm_lsb_nanoseconds=args.pwm_lsb_nanoseconds,
        show_refresh_rate=args.led_show_refresh,
        rotation=args.rotate,
    )


def _session_manager(args: argparse.Namespace, matrix: MatrixConfig) -> DisplaySessionManager:
    if args.dry_run:
        preview = FileTransport(Path(args.dry_run))
        return DisplaySessionManager(lambda: preview, matrix)
    return DisplaySessionManager(MatrixTransport, matrix)


def _load_assets(args: argparse.Namespace) -> AssetStore:
    return AssetStore.load(Path(args.assets), font_path=Path(args.font) if args.font else None)


def build_pipeline(args: argparse.Namespace, blocking: bool = False) -> PipelineOrchestrator:
    matrix = _matrix_config(args)
    assets = _load_assets(args)
    return PipelineOrchestrator(
        router=MessageRouter(default_duration=args.duration, rotation=matrix.rotation),
        assets=assets,
        compositor=FrameCompositor(assets),
        sessions=_session_manager(args, matrix),
        frame_path=Path(args.frame_out) if args.frame_out else None,
        blocking=blocking,
    )


def cmd_run(args: argparse.Namespace) -> int:
    from cactuspi_core.listener import start_listener

    install_crash_hooks()
    logger = get_logger()
    cfg = load_pubsub_config(Path(args.config))
    orchestrator = build_pipeline(args)
    client = start_listener(cfg, orchestrator)
    logger.info("[*] Waiting for messages. To exit press CTRL+C", extra={"event": "listening"})
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("interrupted", extra={"event": "interrupted"})
    finally:
        client.unsubscribe_all()
        orchestrator.shutdown()
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    orchestrator = build_pipeline(args)
    metadata: dict[str, object] = {"name": args.kind}
    if args.priority is not None:
        metadata["priority"] = args.priority
    payload = args.payload.replace("\\n", "\n")

    try:
        request = orchestrator.router.route(args.kind, metadata, payload)
        frame = orchestrator.render(request)
    except MESSAGE_ERRORS as exc:
        _print_json({"success": False, "error": f"{type(exc).__name__}: {exc}"})
        return 2

    out = save_frame(frame, Path(args.out))
    _print_json(
        {
            "success": True,
            "kind": request.kind.value,
            "lines": list(request.lines),
            "overlay": request.overlay_key,
            "duration_s": request.display_duration,
            "out": str(out),
        }
    )
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    matrix = _matrix_config(args)
    sessions = _session_manager(args, matrix)
    try:
        with Image.open(args.image) as image:
            frame = Frame.from_image(image.convert("RGB"))
    except OSError as exc:
        _print_json({"success": False, "error": str(exc)})
        return 2

    try:
        session = sessions.open()
        completed = session.play(frame, args.duration)
    except DeviceError as exc:
        _print_json({"success": False, "error": str(exc)})
        return 2
    _print_json({"success": True, "image": args.image, "completed": completed, "events": sessions.recent_events()})
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg = load_pubsub_config(Path(args.config))
    _print_json(build_doctor_payload(cfg, _matrix_config(args), _load_assets(args)))
    return 0


def _add_device_args(parser: argparse.ArgumentParser) -> None:
    defaults = asdict(MatrixConfig())
    group = parser.add_argument_group("panel")
    group.add_argument("--led-rows", type=int, default=defaults["rows"], help="number of rows supported")
    group.add_argument("--led-cols", type=int, default=defaults["cols"], help="number of columns supported")
    group.add_argument("--led-parallel", type=int, default=defaults["parallel"], help="number of parallel chains")
    group.add_argument("--led-chain", type=int, default=defaults["chain_length"], help="number of daisy-chained panels")
    group.add_argument("--led-show-refresh", action="store_true", help="show refresh rate")
    group.add_argument("--led-inverse", action="store_true", help="switch if your matrix has inverse colors on")
    group.add_argument(
        "--led-no-hardware-pulse",
        dest="led_no_hardware_pulse",
        action="store_true",
        default=defaults["disable_hardware_pulsing"],
        help="don't use hardware pin-pulse generation (default)",
    )
    group.add_argument("--led-hardware-pulse", dest="led_no_hardware_pulse", action="store_false")
    group.add_argument("--brightness", type=int, default=defaults["brightness"], help="brightness (0-100)")
    group.add_argument("--led-gpio-mapping", default=defaults["hardware_mapping"], help="name of GPIO mapping used")
    group.add_argument("--rotate", type=int, choices=[0, 90, 180, 270], default=defaults["rotation"])
    group.add_argument("--pwm-bits", type=int, default=defaults["pwm_bits"])
    group.add_argument("--pwm-lsb-nanoseconds", type=int, default=defaults["pwm_lsb_nanoseconds"])
    group.add_argument("--dry-run", default=None, metavar="PNG", help="write frames to this PNG instead of the panel")


def _add_pipeline_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--assets", default="assets", help="directory of overlay bitmaps")
    parser.add_argument("--font", default=None, help="TrueType font; Pillow's default font when omitted")
    parser.add_argument("--duration", type=float, default=5.0, help="default display duration in seconds")
    parser.add_argument("--frame-out", default=None, help="also write every composed frame to this PNG")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cactuspi", description="CactusPi LED panel message display")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Listen on the pub/sub channel and display messages")
    run_cmd.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="pub/sub key file")
    _add_pipeline_args(run_cmd)
    _add_device_args(run_cmd)
    run_cmd.set_defaults(func=cmd_run)

    render_cmd = sub.add_parser("render", help="Route and compose one message into a PNG")
    render_cmd.add_argument("--kind", required=True, help="message name: subway, weather or covid")
    render_cmd.add_argument("--priority", default=None, help="delay ordinal or weather icon locator")
    render_cmd.add_argument("--payload", required=True, help="message text; \\n separates lines")
    render_cmd.add_argument("--out", default="assets/utf8text.png")
    _add_pipeline_args(render_cmd)
    _add_device_args(render_cmd)
    render_cmd.set_defaults(func=cmd_render)

    show_cmd = sub.add_parser("show", help="Display an image file on the panel")
    show_cmd.add_argument("--image", default="assets/utf8text.png", help="image path")
    show_cmd.add_argument("--duration", type=float, default=5.0)
    _add_device_args(show_cmd)
    show_cmd.set_defaults(func=cmd_show)

    doctor_cmd = sub.add_parser("doctor", help="Print config, panel settings and assets")
    doctor_cmd.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="pub/sub key file")
    _add_pipeline_args(doctor_cmd)
    _add_device_args(doctor_cmd)
    doctor_cmd.set_defaults(func=cmd_doctor)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(console=args.command == "run")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
