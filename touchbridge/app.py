"""Entry point for touchbridge

Manages touch-from-button profiles stored in a YAML file and opens the
editor window for binding keys and gamepad inputs to touch points.
"""
import argparse
import logging
import os

import yaml

from touchbridge.capture import CaptureSession
from touchbridge.config import EditorConfig
from touchbridge.core.descriptor import describe
from touchbridge.devices.registry import get_sources
from touchbridge.editor import TouchEditor
from touchbridge.preview import PreviewWindow, WindowFocus, fit_mapper, WINDOW_SIZE
from touchbridge.profiles import ProfileStore

LOG = logging.getLogger("touchbridge")


def load_config(path: str) -> EditorConfig:
    if not os.path.exists(path):
        return EditorConfig()
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return EditorConfig.from_dict(data)


def build_editor(store: ProfileStore, config: EditorConfig, focus=None) -> TouchEditor:
    session = CaptureSession(
        get_sources,
        poll_interval=config.capture.poll_interval_ms / 1000.0,
        timeout=config.capture.timeout_ms / 1000.0,
        cancel_key=config.capture.cancel_key_code,
        focus=focus,
    )
    mapper = fit_mapper(WINDOW_SIZE, config.surface.width, config.surface.height)
    return TouchEditor(store, session, mapper)


def print_profiles(store: ProfileStore):
    for i, profile in enumerate(store.profiles):
        marker = "*" if i == store.selected_index else " "
        print(f"{marker} {i}: {profile.name} ({len(profile.bindings)} bindings)")


def print_bindings(store: ProfileStore, index: int):
    for row, binding in enumerate(store.get_bindings(index)):
        print(f"  {row:>3}  {describe(binding.descriptor):<20} x={binding.x:<4} y={binding.y}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="touchbridge: map keys and gamepad inputs to touch points")
    parser.add_argument("--profiles", default="touch_profiles.yaml", help="YAML profile file")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (default: INFO)")
    parser.add_argument("--log-format", default="%(levelname)s:%(name)s:%(message)s",
                        help="Logging format string (default: %(levelname)s:%(name)s:%(message)s)")
    parser.add_argument("--debug-modules", nargs="*", default=[],
                        help="Modules to set to DEBUG level (e.g., 'capture', 'editor', 'gamepad')")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("list", help="list profiles")
    show = sub.add_parser("show", help="show the bindings of a profile")
    show.add_argument("index", type=int, nargs="?")
    new = sub.add_parser("new", help="create a profile")
    new.add_argument("name")
    rename = sub.add_parser("rename", help="rename a profile")
    rename.add_argument("index", type=int)
    rename.add_argument("name")
    delete = sub.add_parser("delete", help="delete a profile")
    delete.add_argument("index", type=int)
    select = sub.add_parser("select", help="select the active profile")
    select.add_argument("index", type=int)
    sub.add_parser("edit", help="open the editor window")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=args.log_format)
    for module in args.debug_modules:
        logging.getLogger(f"touchbridge.{module}").setLevel(logging.DEBUG)

    config = load_config(args.profiles)
    store = ProfileStore.load(args.profiles, config.surface.width, config.surface.height)

    def save():
        store.save(args.profiles, extra=config.to_dict())

    command = args.command or "list"
    if command == "list":
        print_profiles(store)
        return 0
    if command == "show":
        index = store.selected_index if args.index is None else args.index
        print_bindings(store, index)
        return 0
    if command == "new":
        store.create_profile(args.name)
    elif command == "rename":
        if not store.rename_profile(args.index, args.name):
            return 1
    elif command == "delete":
        if not store.delete_profile(args.index):
            LOG.error("cannot delete profile %d", args.index)
            return 1
    elif command == "select":
        if not store.select_profile(args.index):
            return 1
    elif command == "edit":
        editor = build_editor(store, config, WindowFocus())
        PreviewWindow(editor, on_save=save).run()
    save()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
