"""
Kernel configuration.

Loads from an optional TOML file, then environment variables:

    JSII_KERNEL_CONFIG      path to a TOML file
    JSII_DEBUG              truthy -> trace every operation
    JSII_KERNEL_LOG_LEVEL   logging level name (default WARNING)

TOML layout:

    log_level = "INFO"

    [trace]
    enabled = true

    [[preload]]
    name = "calc"
    locator = "./libs/calc.py"
"""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from .kernel.trace import TraceOptions

_TRUTHY = {"1", "true", "yes", "on"}


class ModuleSpec(BaseModel):
    name: str
    locator: str


class KernelConfig(BaseModel):
    trace: TraceOptions = Field(default_factory=TraceOptions)
    log_level: str = "WARNING"
    preload: List[ModuleSpec] = Field(default_factory=list)


def load_config(path: Optional[Path] = None) -> KernelConfig:
    """Load configuration from file (if any) and the environment."""
    if path is None:
        env_path = os.environ.get("JSII_KERNEL_CONFIG")
        if env_path:
            path = Path(env_path)

    data = {}
    if path is not None:
        with open(path, "rb") as f:
            data = tomllib.load(f)

    config = KernelConfig.model_validate(data)

    debug = os.environ.get("JSII_DEBUG")
    if debug is not None:
        config.trace.enabled = debug.strip().lower() in _TRUTHY

    level = os.environ.get("JSII_KERNEL_LOG_LEVEL")
    if level:
        config.log_level = level.upper()

    return config


def parse_preload(values: Optional[List[str]]) -> List[ModuleSpec]:
    """Parse NAME=LOCATOR strings from the command line."""
    specs: List[ModuleSpec] = []
    for value in values or []:
        name, sep, locator = value.partition("=")
        if not sep or not name or not locator:
            raise ValueError(f"Expected NAME=LOCATOR, got {value!r}")
        specs.append(ModuleSpec(name=name, locator=locator))
    return specs
