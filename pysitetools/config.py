"""Project configuration, read from an optional ``site.yaml``."""

import copy
import os
from pathlib import Path

import yaml

CONFIG_ENV_VAR = "PYSITETOOLS_CONFIG"
CONFIG_FILENAME = "site.yaml"

DEFAULTS = {
    "dist_dir": "dist",
    "assets_dir": "assets",
    "build_command": ["cargo", "run", "--release"],
    "preview_command": ["cargo", "run"],
    "content_dirs": ["."],
    "content_suffixes": [".md", ".tex"],
    "logos": {
        "logo": {"source": "wake_biology_logo.tex", "label": "Logo"},
        "ideep-logo": {"source": "ideep_logo.tex", "label": "IDEEP logo"},
    },
}


class ConfigError(Exception):
    """Raised when site.yaml cannot be used."""


def config_path(root=None):
    if os.environ.get(CONFIG_ENV_VAR):
        return Path(os.environ[CONFIG_ENV_VAR])
    return Path(root if root is not None else ".") / CONFIG_FILENAME


def _as_list(key, value):
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' should be a list, got {value!r}")
    return [str(j) for j in value]


def load_config(root=None):
    """Return the project settings merged over the defaults.

    Commands read paths relative to ``root`` (the current directory when
    omitted), so the returned dict also carries ``root`` as a Path.
    """
    cfg = copy.deepcopy(DEFAULTS)
    path = config_path(root)
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path} should contain a mapping at top level")
        unknown = sorted(set(data) - set(DEFAULTS))
        if unknown:
            raise ConfigError(
                f"Unknown setting(s) in {path}: " + ", ".join(unknown)
            )
        for key, value in data.items():
            if key == "logos":
                cfg["logos"] = _normalize_logos(value, path)
            elif key in ("dist_dir", "assets_dir"):
                cfg[key] = str(value)
            else:
                cfg[key] = _as_list(key, value)
    cfg["root"] = Path(root if root is not None else ".")
    return cfg


def _normalize_logos(value, path):
    if not isinstance(value, dict):
        raise ConfigError(f"'logos' in {path} should be a mapping")
    logos = {}
    for name, entry in value.items():
        if isinstance(entry, str):
            entry = {"source": entry}
        if not isinstance(entry, dict) or "source" not in entry:
            raise ConfigError(f"logo '{name}' in {path} needs a 'source'")
        logos[name] = {
            "source": str(entry["source"]),
            "label": str(entry.get("label", "Logo")),
        }
    return logos
