"""
Configuration for the indent form.

load_config() layers three sources, last one wins:
    1. DEFAULTS below
    2. indent_config.json (optional, path from INDENT_CONFIG)
    3. Environment variables (production overrides)

Env vars:
    STORE_BACKEND   — "local" (SQLite sheet) or "remote" (Apps Script web app)
    STORE_URL       — web app URL when STORE_BACKEND=remote
    STORE_TIMEOUT   — seconds per HTTP call to the remote store
    SECRET_KEY      — Flask session key
    DASH_USER / DASH_PASS — Basic Auth for the form pages
"""
import os
import json
import copy
import logging

from . import paths

log = logging.getLogger("indent.config")

DEFAULTS = {
    "company": {
        "name": "AMG Reality",
        "subtitle": "Indent / Issue Request",
    },
    "stores": [
        "Palm Walk",
        "Palm Marina",
        "Palm City",
        "Garden",
        "Maurya Green",
        "ONE AMG",
    ],
    "units": ["Nos", "Pcs", "Feet", "Meters", "Kg", "Ltr", "Box", "Set"],
    "store": {
        "backend": "local",
        "url": "",
        "timeout": 15,
    },
    "secret_key": "indent-desk-dev",
    "dash_user": "indent",
    "dash_pass": "changeme",
}

_ENV_OVERRIDES = {
    "STORE_BACKEND": ("store", "backend", str),
    "STORE_URL": ("store", "url", str),
    "STORE_TIMEOUT": ("store", "timeout", float),
    "SECRET_KEY": (None, "secret_key", str),
    "DASH_USER": (None, "dash_user", str),
    "DASH_PASS": (None, "dash_pass", str),
}


def _merge(base: dict, extra: dict) -> dict:
    for key, val in extra.items():
        if isinstance(val, dict) and isinstance(base.get(key), dict):
            _merge(base[key], val)
        else:
            base[key] = val
    return base


def load_config(path: str = None, overrides: dict = None) -> dict:
    """Build the effective config dict."""
    cfg = copy.deepcopy(DEFAULTS)

    path = path or paths.CONFIG_PATH
    if os.path.exists(path):
        try:
            with open(path) as f:
                _merge(cfg, json.load(f))
        except (OSError, ValueError) as e:
            log.warning("Config %s unreadable, using defaults: %s", path, e)

    for env, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env)
        if raw in (None, ""):
            continue
        try:
            val = cast(raw)
        except ValueError:
            log.warning("Ignoring %s=%r (not a valid %s)", env, raw, cast.__name__)
            continue
        if section:
            cfg[section][key] = val
        else:
            cfg[key] = val

    if overrides:
        _merge(cfg, overrides)

    backend = cfg["store"]["backend"]
    if backend not in ("local", "remote"):
        log.warning("Unknown STORE_BACKEND %r, falling back to local", backend)
        cfg["store"]["backend"] = "local"
    if cfg["store"]["backend"] == "remote" and not cfg["store"]["url"]:
        log.warning("STORE_BACKEND=remote but STORE_URL is empty, falling back to local")
        cfg["store"]["backend"] = "local"
    return cfg
