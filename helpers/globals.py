import logging
import os
from typing import Any

import yaml


def project_root() -> str:
    """
    Returns the absolute path to the project root directory.
    This file lives in: project/helpers/globals.py
    So project root = dirname(dirname(__file__))
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def config_path() -> str:
    """
    Path of the active config file:
    - CONFIG_PATH env var when set and the file exists.
    - Otherwise config.yml under the project root.
    """
    override = os.getenv("CONFIG_PATH")
    if override and os.path.exists(override):
        return override
    return os.path.join(project_root(), "config.yml")


def load_config() -> dict:
    """
    Load config.yml reliably.

    A missing file is not fatal: the classifier has built-in defaults for
    every key, so we warn and return an empty config.
    """
    path = config_path()

    if not os.path.exists(path):
        logging.warning(f"[Config] config.yml not found at: {path}; using defaults")
        return {}

    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _lookup_config_key(key: str):
    """Internal helper: resolve a.b.c from CONFIG."""
    parts = key.split(".")
    node = load_config()

    for p in parts:
        if isinstance(node, dict) and p in node:
            node = node[p]
        else:
            return None

    return node


def cfg(key: str, default: Any = None) -> Any:
    """
    Unified configuration accessor.

    Precedence:
      1. Environment variable override:
            key = "classifier.mobile_breakpoint"
            ENV = CLASSIFIER_MOBILE_BREAKPOINT

      2. Value from config.yml (nested lookup)

      3. Default parameter

    Supports: str, int, float, bool.
    """

    # 1. ENV override using upper snake case
    env_key = key.replace(".", "_").upper()

    if env_key in os.environ:
        raw = os.environ[env_key]

        # Type conversion follows the config file value, or the default
        # when the file does not carry the key
        cfg_val = _lookup_config_key(key)
        if cfg_val is None:
            cfg_val = default

        if isinstance(cfg_val, bool):
            return raw.lower() in ("1", "true", "yes", "on")

        if isinstance(cfg_val, int):
            try:
                return int(raw)
            except ValueError:
                pass

        if isinstance(cfg_val, float):
            try:
                return float(raw)
            except ValueError:
                pass

        # fallback: treat as string
        return raw

    # 2. Fallback to config.yml
    cfg_value = _lookup_config_key(key)
    if cfg_value is not None:
        return cfg_value

    # 3. Fallback to provided default
    return default
