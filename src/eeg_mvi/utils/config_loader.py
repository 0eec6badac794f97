"""Pipeline configuration loading.

A pipeline config is a YAML/JSON mapping with two sections:
  - data: input, sfreq, out_dir, stem
  - analysis: MVIConfig keys plus 'ranking'

Files are parsed and resolved with OmegaConf; anything that does not parse,
or whose top level is not that mapping, raises ConfigurationError.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from ..validity.errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

CONFIG_SECTIONS = ("data", "analysis")


def check_sections(cfg: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate the top-level layout of a pipeline config.

    Returns:
        The config as a dict, with missing sections filled in as empty dicts.

    Raises:
        ConfigurationError: unknown top-level keys, or a section that is not a mapping.
    """
    if not isinstance(cfg, Mapping):
        raise ConfigurationError(f"config must be a mapping, got {type(cfg).__name__}")
    unknown = sorted(set(cfg) - set(CONFIG_SECTIONS))
    if unknown:
        raise ConfigurationError(f"unknown config sections: {unknown} (expected {list(CONFIG_SECTIONS)})")
    out = dict(cfg)
    for section in CONFIG_SECTIONS:
        value = out.get(section)
        if value is None:
            out[section] = {}
        elif not isinstance(value, Mapping):
            raise ConfigurationError(f"config section '{section}' must be a mapping, got {type(value).__name__}")
    return out


def load_config(path: str | Path) -> Dict[str, Any]:
    """
    Load, resolve and check a pipeline config file.

    Raises:
        FileNotFoundError: If the path does not exist.
        ConfigurationError: If the file does not parse or has the wrong layout.
    """
    p = Path(path)
    if not p.exists():
        logger.error("Config file not found: %s", p)
        raise FileNotFoundError(f"Config not found: {p}")
    try:
        cfg = OmegaConf.load(str(p))
        if not isinstance(cfg, DictConfig):
            raise ConfigurationError(f"{p}: top level must be a mapping of sections")
        container = OmegaConf.to_container(cfg, resolve=True)
    except (yaml.YAMLError, OmegaConfBaseException) as exc:
        raise ConfigurationError(f"{p}: cannot parse config: {exc}") from exc
    logger.info("Loaded config: %s", p)
    return check_sections(container)
