"""Application wiring: build the service objects once and hand them out by reference."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Type

from blueprints.adapters import ADAPTERS, BaseProviderAdapter
from blueprints.metrics import ProviderMetricsCollector
from blueprints.service import BlueprintService
from blueprints.settings import ConfigManager
from blueprints.validation import BlueprintValidationService
from observability.logging import setup_logging


@dataclass
class BlueprintServices:
    config: ConfigManager
    metrics: ProviderMetricsCollector
    service: BlueprintService
    validation: BlueprintValidationService


def build_services(
    config_manager: Optional[ConfigManager] = None,
    adapters: Optional[Mapping[str, Type[BaseProviderAdapter]]] = None,
    configure_logging: bool = True,
) -> BlueprintServices:
    """
    Construct the object graph for one process.

    Logging is configured from the ``debug_mode`` feature flag unless
    ``configure_logging`` is False.
    """
    config = config_manager or ConfigManager.from_env()
    if configure_logging:
        setup_logging(debug=config.get_config().features.debug_mode)

    metrics = ProviderMetricsCollector()
    return BlueprintServices(
        config=config,
        metrics=metrics,
        service=BlueprintService(config, adapters=adapters or ADAPTERS, metrics=metrics),
        validation=BlueprintValidationService(),
    )
