"""Provider adapter registry."""

from __future__ import annotations

from typing import Dict, List, Type

from blueprints.adapters.base import BaseProviderAdapter
from blueprints.adapters.gelato import GelatoAdapter
from blueprints.adapters.gooten import GootenAdapter
from blueprints.adapters.printful import PrintfulAdapter
from blueprints.adapters.printify import PrintifyAdapter
from blueprints.errors import UnknownProviderError


ADAPTERS: Dict[str, Type[BaseProviderAdapter]] = {
    "printify": PrintifyAdapter,
    "printful": PrintfulAdapter,
    "gooten": GootenAdapter,
    "gelato": GelatoAdapter,
}


def get_adapter_class(provider_id: str) -> Type[BaseProviderAdapter]:
    adapter_class = ADAPTERS.get(provider_id)
    if adapter_class is None:
        raise UnknownProviderError(provider_id, f"Unsupported provider: {provider_id}")
    return adapter_class


def available_provider_ids() -> List[str]:
    return list(ADAPTERS.keys())


__all__ = [
    "ADAPTERS",
    "BaseProviderAdapter",
    "GelatoAdapter",
    "GootenAdapter",
    "PrintfulAdapter",
    "PrintifyAdapter",
    "available_provider_ids",
    "get_adapter_class",
]
