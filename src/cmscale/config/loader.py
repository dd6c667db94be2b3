# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cmscale/config/loader.py

import logging
import os
import shlex
from pathlib import Path

import yaml
from pydantic import ValidationError

from cmscale.errors import ConfigInvalid, ConfigNotFound
from .models import CMConfig

log = logging.getLogger("cmscale")


def _entries(raw: str):
    """
    Yield ``(lineno, text)`` for each setting.

    A quoted value may span several lines, the way ``source`` reads it.
    """
    pending = None
    start = 0
    for lineno, line in enumerate(raw.splitlines(), start=1):
        if pending is None:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            pending, start = line, lineno
        else:
            pending += "\n" + line
        try:
            shlex.split(pending, comments=True)
        except ValueError:
            continue
        yield start, pending
        pending = None
    if pending is not None:
        raise ConfigInvalid(f"Line {start}: unterminated quoted value")


def _parse_key_values(raw: str) -> dict:
    """
    Parse shell-style ``KEY=value`` settings.

    Blank lines and ``#`` comments are ignored, an ``export`` prefix is
    accepted and values may be quoted the way a shell would quote them.
    ``$VAR`` references are expanded unless the value is single-quoted.
    """
    data: dict = {}
    for lineno, text in _entries(raw):
        stripped = text.strip()
        if stripped.startswith("export "):
            stripped = stripped[len("export "):].lstrip()
        key, sep, value = stripped.partition("=")
        if not sep or not key.strip() or "\n" in key:
            raise ConfigInvalid(f"Line {lineno}: expected KEY=value, got {text.splitlines()[0]!r}")
        parsed = " ".join(shlex.split(value, comments=True))
        if not value.lstrip().startswith("'"):
            parsed = os.path.expandvars(parsed)
        data[key.strip()] = parsed
    return data


def _load_raw(path: Path) -> dict:
    raw = path.read_text()
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(os.path.expandvars(raw)) or {}
        if not isinstance(data, dict):
            raise ConfigInvalid(f"{path}: top level must be a mapping")
        return data
    return _parse_key_values(raw)


def load_config(path: str | Path) -> CMConfig:
    """
    Load and validate a cmscale config file.

    Two formats are understood:

    **key/value (default)**
        The same ``CM_HOST=...`` file the operators already source from
        their shell. Values may use ``${ENV_VAR}`` placeholders, which are
        left alone inside single quotes. A quoted value may span lines
        (an inline SSH private key, for instance).

    **YAML**
        Any file ending in ``.yaml`` / ``.yml`` holding a flat mapping with
        the same keys.

    Keys are case-insensitive; empty values fall back to the model default.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigNotFound(f"Config file {path} not found.")

    data = {
        str(k).lower(): v
        for k, v in _load_raw(path).items()
        if v not in (None, "")
    }
    log.debug("Loaded config keys from %s: %s", path, sorted(data))

    try:
        return CMConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigInvalid(f"Invalid config {path}:\n{exc}") from exc
