"""
Configuration for the smartify.io module.

Defines SmartifySettings, a frozen dataclass carrying runtime configuration for the
file drivers. Defaults are sourced from smartify.core.constants (the single source of
truth).

Source of truth
- smartify.core.constants.DEFAULT_SEPARATOR, DEFAULT_QUOTE_CHAR, DEFAULT_SMART_ATTRIBUTE,
  DEFAULT_DATA_TYPE, PROGRESS_EVERY, EDGE_TMP_SUFFIX

Precedence
- CLI flags > environment (SMARTIFY_*) > TOML (smartify.toml or [tool.smartify]) > defaults.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from smartify.core.constants import DATA_TYPES
from smartify.core.constants import DEFAULT_DATA_TYPE as CORE_DATA_TYPE
from smartify.core.constants import DEFAULT_QUOTE_CHAR as CORE_QUOTE_CHAR
from smartify.core.constants import DEFAULT_SEPARATOR as CORE_SEPARATOR
from smartify.core.constants import DEFAULT_SMART_ATTRIBUTE as CORE_SMART_ATTRIBUTE
from smartify.core.constants import EDGE_TMP_SUFFIX as CORE_TMP_SUFFIX
from smartify.core.constants import PROGRESS_EVERY as CORE_PROGRESS_EVERY

from .errors import IoConfigError

DataType = Literal["csv", "jsonl"]


@dataclass(frozen=True)
class SmartifySettings:
    """
    Runtime settings shared by the vertex and edge drivers.

    Attributes:
        data_type (Literal["csv","jsonl"]): Input encoding.
        separator (str): CSV field separator (one character).
        quote_char (str): CSV quote character (one character).
        smart_attribute (str): Name of the sharding attribute field.
        smart_index (int): Truncation length for attributes and direct edge resolution
            (<=0 means unbounded / disabled).
        progress_every (int): Records between progress log lines (>=1).
        tmp_suffix (str): Suffix of the sibling file written before the atomic replace.
        log_level (str): Level for the smartify logger.

    Examples:
        >>> SmartifySettings(separator=";").separator
        ';'
    """

    data_type: DataType = CORE_DATA_TYPE  # type: ignore[assignment]
    separator: str = CORE_SEPARATOR
    quote_char: str = CORE_QUOTE_CHAR
    smart_attribute: str = CORE_SMART_ATTRIBUTE
    smart_index: int = -1
    progress_every: int = CORE_PROGRESS_EVERY
    tmp_suffix: str = CORE_TMP_SUFFIX
    log_level: str = "INFO"

    def validate(self) -> SmartifySettings:
        """
        Check cross-field constraints.

        Returns:
            SmartifySettings: self, for chaining.

        Raises:
            IoConfigError: On an invalid separator/quote pair, data type, interval, or log level.
        """
        if self.data_type not in DATA_TYPES:
            raise IoConfigError(f"unsupported data type {self.data_type!r} (expected one of {DATA_TYPES})")
        if len(self.separator) != 1:
            raise IoConfigError(f"separator must be a single character, got {self.separator!r}")
        if len(self.quote_char) != 1:
            raise IoConfigError(f"quote character must be a single character, got {self.quote_char!r}")
        if self.separator == self.quote_char:
            raise IoConfigError("separator and quote character must differ")
        if not self.smart_attribute:
            raise IoConfigError("smart graph attribute name must not be empty")
        if self.progress_every < 1:
            raise IoConfigError(f"progress_every must be >= 1, got {self.progress_every}")
        if not self.tmp_suffix:
            raise IoConfigError("tmp_suffix must not be empty")
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            raise IoConfigError(f"unknown log level {self.log_level!r}")
        return self

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: SmartifySettings, cfg: dict[str, Any] | None) -> SmartifySettings:
        """Apply a loose config mapping onto SmartifySettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        for name in ("separator", "quote_char", "smart_attribute", "tmp_suffix"):
            if name in cfg and isinstance(cfg[name], str):
                s = replace(s, **{name: cfg[name]})

        if "data_type" in cfg and isinstance(cfg["data_type"], str):
            dt = cfg["data_type"].strip().lower()
            if dt in DATA_TYPES:
                s = replace(s, data_type=dt)  # type: ignore[arg-type]

        if "log_level" in cfg and isinstance(cfg["log_level"], str):
            s = replace(s, log_level=cfg["log_level"].strip().upper())

        for name in ("smart_index", "progress_every"):
            if name in cfg:
                try:
                    s = replace(s, **{name: int(cfg[name])})
                except (TypeError, ValueError):
                    pass

        return s

    @classmethod
    def from_env(
        cls, base: SmartifySettings | None = None, prefix: str = "SMARTIFY_"
    ) -> SmartifySettings:
        """
        Build SmartifySettings from environment variables. Precedence is env > base > defaults.

        Recognized variables:
            - SMARTIFY_DATA_TYPE ("csv" | "jsonl")
            - SMARTIFY_SEPARATOR
            - SMARTIFY_QUOTE_CHAR
            - SMARTIFY_SMART_ATTRIBUTE
            - SMARTIFY_SMART_INDEX
            - SMARTIFY_PROGRESS_EVERY
            - SMARTIFY_TMP_SUFFIX
            - SMARTIFY_LOG_LEVEL
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for name in (
            "data_type",
            "separator",
            "quote_char",
            "smart_attribute",
            "smart_index",
            "progress_every",
            "tmp_suffix",
            "log_level",
        ):
            v = os.getenv(prefix + name.upper())
            if v:
                mapping[name] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> SmartifySettings:
        """
        Build SmartifySettings from a TOML file.

        Search order when `path` is None:
            1) ./smartify.toml (with either a [smartify] table or top-level keys)
            2) ./pyproject.toml under [tool.smartify]

        Returns defaults if no file is present.

        Raises:
            IoConfigError: If an explicitly given file does not parse.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any]:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except tomllib.TOMLDecodeError as exc:
                raise IoConfigError(f"invalid TOML in {p}: {exc}") from exc

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "smartify.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                if path is not None:
                    raise IoConfigError(f"config file not found: {p}")
                continue
            data = _load_toml(p)
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("smartify") if isinstance(tool, dict) else None
            else:
                top = data
                if "smartify" in top and isinstance(top["smartify"], dict):
                    cfg = top["smartify"]
                else:
                    cfg = top
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> SmartifySettings:
        """
        Load SmartifySettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (smartify.toml, pyproject.toml).

        Returns:
            SmartifySettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
