"""hoareup configuration — project-level .hoareuprc.yml support.

Loads configuration from .hoareuprc.yml (or .hoareuprc.yaml, .hoareuprc.json)
found by walking up from the working directory.

Example .hoareuprc.yml:
    prover_timeout_ms: 5000     # per verification condition
    max_iterations: 1000        # loop budget of the reference interpreter
    emit_smtlib2: true          # keep SMT-LIB2 queries in the proof trace
    format: json                # "text" or "json"
    fail_fast: false            # stop at the first refuted VC
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from hoareup.prover import DEFAULT_TIMEOUT_MS
from hoareup.semantics import DEFAULT_MAX_ITERATIONS

logger = logging.getLogger(__name__)


@dataclass
class VerifierConfig:
    """Project-level hoareup configuration."""
    prover_timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    emit_smtlib2: bool = True
    # Report format: "text" or "json"
    format: str = "text"
    fail_fast: bool = False


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".hoareuprc.yml",
    ".hoareuprc.yaml",
    ".hoareuprc.json",
    "hoareup.config.yml",
    "hoareup.config.json",
]

_FORMATS = ("text", "json")


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> VerifierConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    If no config file is found, or it cannot be read or parsed, returns
    defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return VerifierConfig()

    try:
        with open(path, "r") as f:
            content = f.read()
    except (IOError, OSError) as exc:
        logger.warning("cannot read %s: %s; using defaults", path, exc)
        return VerifierConfig()

    try:
        if path.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        logger.warning("cannot parse %s: %s; using defaults", path, exc)
        return VerifierConfig()

    if not isinstance(data, dict):
        logger.warning("%s does not hold a mapping; using defaults", path)
        return VerifierConfig()

    return _dict_to_config(data)


def _dict_to_config(data: Dict[str, Any]) -> VerifierConfig:
    """Convert a parsed dict to VerifierConfig."""
    config = VerifierConfig()

    if "prover_timeout_ms" in data:
        config.prover_timeout_ms = int(data["prover_timeout_ms"])
    if "max_iterations" in data:
        config.max_iterations = int(data["max_iterations"])
    if "emit_smtlib2" in data:
        config.emit_smtlib2 = bool(data["emit_smtlib2"])
    if "format" in data:
        fmt = str(data["format"])
        if fmt in _FORMATS:
            config.format = fmt
        else:
            logger.warning("unknown report format %r; keeping %r", fmt, config.format)
    if "fail_fast" in data:
        config.fail_fast = bool(data["fail_fast"])

    return config
