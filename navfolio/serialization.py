"""
Serialization module for navfolio inputs and results.

Purpose
-------
JSON persistence for NAV histories, portfolio definitions and analysis
results, so the CLI and other callers can work from files.

File formats
------------
- NAV history: ``{"2024-01": 145.2, ...}``, optionally wrapped as
  ``{"schema_version": "...", "nav": {...}}`` (the form save_nav_data writes)
- NAV map: ``{"Fund name": {"2024-01": 145.2, ...}, ...}``
- Portfolio: PortfolioConfig as JSON (see navfolio.config)
- Results: any result dataclass, converted with to_jsonable()

Design Principles
-----------------
- Type-safe: portfolio files are validated by the Pydantic configs
- Human-readable: indented JSON for easy editing
- Backward compatible: schema versions are checked, mismatches warn

Example
-------
>>> from pathlib import Path
>>> from navfolio.serialization import load_nav_data, save_result
>>> nav = load_nav_data(Path("nav.json"))
>>> result = calculate_lumpsum_value(100_000, "2024-01", nav)
>>> save_result(result, Path("out/lumpsum.json"))
"""

from __future__ import annotations
from typing import Dict, Any, Union
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from pathlib import Path
from datetime import date
import json
import logging
import warnings

import numpy as np
import pandas as pd
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import PortfolioConfig
from .exceptions import ConfigurationError
from .month_key import MonthKey
from .nav_series import normalize_nav_data
from .types import NavData

logger = logging.getLogger(__name__)

__all__ = [
    "SCHEMA_VERSION",
    "load_nav_data",
    "save_nav_data",
    "load_nav_map",
    "load_portfolio",
    "save_portfolio",
    "to_jsonable",
    "save_result",
]

PathLike = Union[str, Path]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "1.0.0"


def _check_schema_version(config: Mapping, path: Path) -> None:
    schema_version = config.get("schema_version")
    if schema_version is not None and schema_version != SCHEMA_VERSION:
        warnings.warn(
            f"{path.name}: schema version {schema_version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


def _read_json(path: PathLike) -> Any:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"File not found: {path}") from None
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc


def _write_json(payload: Any, path: PathLike) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# NAV histories
# ---------------------------------------------------------------------------

def _unwrap_nav(config: Any, path: Path) -> Mapping:
    if not isinstance(config, Mapping):
        raise ConfigurationError(f"{path}: expected a JSON object of month -> NAV.")
    if "nav" in config:
        _check_schema_version(config, path)
        config = config["nav"]
        if not isinstance(config, Mapping):
            raise ConfigurationError(f"{path}: 'nav' must be a JSON object of month -> NAV.")
    return config


def load_nav_data(path: PathLike) -> Dict[MonthKey, float]:
    """
    Load and normalize a NAV history from JSON.

    Parameters
    ----------
    path : str or Path
        File holding ``{"YYYY-MM": nav}`` or ``{"nav": {...}}``.

    Returns
    -------
    dict
        Normalized history (MonthKey -> float, ascending).

    Raises
    ------
    ConfigurationError
        Missing file, invalid JSON, or wrong top-level shape.
    ValidationError
        Malformed months or non-positive NAVs.
    """
    path = Path(path)
    nav = normalize_nav_data(_unwrap_nav(_read_json(path), path))
    logger.debug("Loaded %d NAV entries from %s", len(nav), path)
    return nav


def save_nav_data(nav_data: NavData, path: PathLike) -> None:
    """
    Save a NAV history as ``{"schema_version": ..., "nav": {...}}``.

    Examples
    --------
    >>> save_nav_data({"2024-01": 100, "2024-02": 105}, Path("nav.json"))
    """
    normalized = normalize_nav_data(nav_data)
    _write_json(
        {"schema_version": SCHEMA_VERSION, "nav": {str(k): v for k, v in normalized.items()}},
        path,
    )


def load_nav_map(path: PathLike) -> Dict[str, Dict[MonthKey, float]]:
    """
    Load NAV histories for several funds: ``{"fund name": {"YYYY-MM": nav}}``.

    A top-level ``schema_version`` key is checked and skipped.
    """
    path = Path(path)
    config = _read_json(path)
    if not isinstance(config, Mapping):
        raise ConfigurationError(f"{path}: expected a JSON object of fund name -> NAV history.")
    _check_schema_version(config, path)

    nav_map: Dict[str, Dict[MonthKey, float]] = {}
    for fund, history in config.items():
        if fund == "schema_version":
            continue
        nav_map[fund] = normalize_nav_data(_unwrap_nav(history, path))
    logger.debug("Loaded NAV histories for %d funds from %s", len(nav_map), path)
    return nav_map


# ---------------------------------------------------------------------------
# Portfolios
# ---------------------------------------------------------------------------

def load_portfolio(path: PathLike) -> PortfolioConfig:
    """
    Load a portfolio definition.

    Raises
    ------
    ConfigurationError
        Missing file, invalid JSON or a definition the config model rejects.

    Examples
    --------
    >>> portfolio = load_portfolio(Path("portfolio.json"))
    >>> holdings = portfolio.holdings()
    """
    path = Path(path)
    config = _read_json(path)
    if not isinstance(config, Mapping):
        raise ConfigurationError(f"{path}: expected a JSON object describing a portfolio.")
    _check_schema_version(config, path)
    try:
        return PortfolioConfig.model_validate(config)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid portfolio file {path}:\n{exc}") from exc


def save_portfolio(portfolio: PortfolioConfig, path: PathLike) -> None:
    """Save a portfolio definition stamped with the current schema version."""
    data = portfolio.model_dump(mode="json")
    data["schema_version"] = SCHEMA_VERSION
    _write_json(data, path)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def to_jsonable(obj: Any) -> Any:
    """
    Convert results into JSON-compatible data.

    Handles result dataclasses (via their ``to_dict``), pydantic models,
    dates, MonthKeys, numpy scalars/arrays and pandas Series, recursively.

    Examples
    --------
    >>> to_jsonable({"when": date(2024, 1, 1), "units": np.float64(1.5)})
    {'when': '2024-01-01', 'units': 1.5}
    """
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if is_dataclass(obj) and not isinstance(obj, type):
        data = obj.to_dict() if hasattr(obj, "to_dict") else asdict(obj)
        return to_jsonable(data)
    if isinstance(obj, str):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, pd.Series):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj


def save_result(result: Any, path: PathLike) -> None:
    """
    Save any result to JSON with the schema version.

    Examples
    --------
    >>> save_result(calculate_sip_value(10_000, "2024-01", nav), Path("sip.json"))
    """
    payload = to_jsonable(result)
    if isinstance(payload, dict):
        payload = {"schema_version": SCHEMA_VERSION, **payload}
    else:
        payload = {"schema_version": SCHEMA_VERSION, "result": payload}
    _write_json(payload, path)
    logger.info("Saved result to %s", path)
