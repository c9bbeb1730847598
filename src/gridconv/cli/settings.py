# src/gridconv/cli/settings.py
"""Option defaults for the gridconv CLI, loaded from / saved to JSON or CSV files."""
from __future__ import annotations

import argparse
import csv
import enum
import json
import logging
from pathlib import Path
from typing import Any, Iterable

__all__ = [
    "add_settings_args",
    "split_settings_args",
    "load_settings",
    "save_settings",
    "settings_for",
    "apply_defaults",
    "options_to_settings",
    "find_subparser",
    "subcommand_names",
]

logger = logging.getLogger(__name__)

SETTINGS_DESTS = {"settings_path", "save_settings_path"}


def add_settings_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--settings",
        dest="settings_path",
        default=None,
        help="Load option defaults from a settings file (json or csv).",
    )
    parser.add_argument(
        "--save-settings",
        dest="save_settings_path",
        default=None,
        help="Save the effective option values to a settings file (json or csv).",
    )


def split_settings_args(
    argv: Iterable[str],
    commands: Iterable[str] | None = None,
) -> tuple[list[str], str | None, str | None, str | None]:
    """
    Pull ``--settings`` / ``--save-settings`` out of ``argv``.

    Returns ``(remaining_argv, settings_path, save_path, command)``. When
    ``commands`` is given, ``command`` is the first argument naming one of
    them, so values of other options (``--log-file x.log``) are not taken
    for it; otherwise it is the first positional argument, if any. The
    settings options are removed wherever they appear so that defaults can
    be applied before argparse sees the rest.
    """
    remaining: list[str] = []
    found: dict[str, str | None] = {"--settings": None, "--save-settings": None}

    args = list(argv)
    i = 0
    while i < len(args):
        arg = args[i]
        flag, eq, value = arg.partition("=")
        if flag in found:
            if not eq:
                if i + 1 >= len(args):
                    raise SystemExit(f"{flag} requires a path.")
                value = args[i + 1]
                i += 1
            found[flag] = value
        else:
            remaining.append(arg)
        i += 1

    if commands is not None:
        names = set(commands)
        command = next((a for a in remaining if a in names), None)
    else:
        command = next((a for a in remaining if not a.startswith("-")), None)
    return remaining, found["--settings"], found["--save-settings"], command


# ---------------------------------------------------------------------------
# File formats
# ---------------------------------------------------------------------------

def _read_csv(path: Path) -> dict[str, Any]:
    data: dict[str, Any] = {}
    with path.open("r", newline="", encoding="utf-8") as handle:
        for row in csv.reader(handle):
            if not row or not row[0].strip():
                continue
            key = row[0].strip()
            if key.lower() == "key":
                continue
            raw = row[1].strip() if len(row) > 1 else ""
            try:
                data[key] = json.loads(raw) if raw else ""
            except json.JSONDecodeError:
                data[key] = raw
    return data


def _write_csv(path: Path, data: dict[str, Any]) -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(["key", "value"])
        for key in sorted(data):
            writer.writerow([key, json.dumps(data[key], ensure_ascii=True)])


def load_settings(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise SystemExit(f"Settings file not found: {path}")
    if path.suffix.lower() == ".csv":
        return _read_csv(path)
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise SystemExit(f"Settings file is not valid JSON: {path} ({exc})") from exc
    if not isinstance(data, dict):
        raise SystemExit(f"Settings file must be a JSON object: {path}")
    return data


def save_settings(path: Path, settings: dict[str, Any], *, command: str | None = None) -> None:
    """
    Write ``settings``. JSON files keep one section per subcommand, so
    saving ``run`` options does not clobber saved ``compare`` options.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".csv":
        _write_csv(path, settings)
        return

    data: dict[str, Any] = settings
    if command:
        data = load_settings(path) if path.exists() else {}
        # A flat file becomes the "default" section before sections are added.
        if data and all(not isinstance(v, dict) for v in data.values()):
            data = {"default": data}
        data[command] = settings
    with path.open("w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, sort_keys=True, ensure_ascii=True)
        handle.write("\n")
    logger.info("Saved settings to %s", path)


def settings_for(data: dict[str, Any], command: str | None) -> dict[str, Any]:
    """Pick the section for ``command``, else a ``default`` section, else a flat mapping."""
    if command and isinstance(data.get(command), dict):
        return dict(data[command])
    if isinstance(data.get("default"), dict):
        return dict(data["default"])
    if all(not isinstance(v, dict) for v in data.values()):
        return dict(data)
    return {}


# ---------------------------------------------------------------------------
# argparse glue
# ---------------------------------------------------------------------------

def _options(parser: argparse.ArgumentParser) -> list[argparse.Action]:
    return [a for a in parser._actions if a.option_strings and a.dest not in SETTINGS_DESTS]


def apply_defaults(parser: argparse.ArgumentParser, settings: dict[str, Any]) -> None:
    known = {a.dest: a for a in _options(parser)}
    for key, value in settings.items():
        action = known.get(key)
        if action is None:
            logger.warning("Ignoring unknown setting %r", key)
            continue
        action.default = value
        action.required = False


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    return value


def options_to_settings(args: argparse.Namespace, parser: argparse.ArgumentParser) -> dict[str, Any]:
    return {
        a.dest: _plain(getattr(args, a.dest))
        for a in _options(parser)
        if hasattr(args, a.dest) and a.dest not in ("help", "version")
    }


def find_subparser(
    parser: argparse.ArgumentParser, command: str | None
) -> argparse.ArgumentParser | None:
    if not command:
        return None
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            return action.choices.get(command)
    return None


def subcommand_names(parser: argparse.ArgumentParser) -> list[str]:
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            return list(action.choices)
    return []
