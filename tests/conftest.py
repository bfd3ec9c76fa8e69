"""Shared test fixtures for apidelta."""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture()
def base_graph() -> dict[str, Any]:
    """A small API: one WebAPI, one endpoint with one operation and one parameter."""
    return {
        "@graph": [
            {
                "@id": "#/web-api",
                "@type": ["apiContract:WebAPI", "doc:RootDomainElement"],
                "core:name": "Shop API",
                "core:version": "v1",
                "apiContract:endpoint": [{"@id": "#/web-api/end-points/items"}],
            },
            {
                "@id": "#/web-api/end-points/items",
                "@type": ["apiContract:EndPoint"],
                "apiContract:path": "/items",
                "apiContract:supportedOperation": [{"@id": "#/web-api/end-points/items/get"}],
            },
            {
                "@id": "#/web-api/end-points/items/get",
                "@type": ["apiContract:Operation"],
                "core:name": "getItems",
                "apiContract:method": "get",
                "apiContract:expects": {"@id": "#/web-api/end-points/items/get/request"},
            },
            {
                "@id": "#/web-api/end-points/items/get/request/parameter/limit",
                "@type": ["apiContract:Parameter"],
                "core:name": "limit",
                "apiContract:required": False,
            },
        ],
        "@context": {"@base": "amf://id", "doc": "http://a.ml/vocabularies/document#"},
    }


@pytest.fixture()
def new_graph(base_graph: dict[str, Any]) -> dict[str, Any]:
    """A deep copy of ``base_graph`` for tests to modify."""
    return copy.deepcopy(base_graph)


@pytest.fixture()
def write_graph(tmp_path: Path) -> Callable[[str, dict[str, Any]], Path]:
    """Return a helper that writes a graph as JSON under ``tmp_path``."""

    def _write(relative: str, graph: dict[str, Any]) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(graph), encoding="utf-8")
        return path

    return _write
