"""Ingestion helpers."""

from __future__ import annotations

import pathlib
from typing import Any

import yaml


def load_records(path: pathlib.Path | str) -> list[dict[str, Any]]:
    """Read a batch of scraped products from a YAML or JSON file.

    Accepts either a bare list or a ``{"products": [...]}`` document.
    """
    data = yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("products")
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of products")
    return [item for item in data if isinstance(item, dict)]
