from __future__ import annotations

from typing import Literal

from fitfuel_admin.config import get_config

from .backends.json_backend import JsonDocumentStore
from .interface import Gateway


def get_gateway(kind: Literal["json"] = None) -> Gateway:
    config = get_config()
    kind = kind or config.gateway_kind
    if kind == "json":
        # Reads from configured JSON folder
        return JsonDocumentStore(data_dir=config.data_dir)
    raise ValueError(f"Unknown gateway kind: {kind}")
