from blueprints.adapters import ADAPTERS
from blueprints.bootstrap import build_services
from blueprints.settings import ConfigManager


def test_build_services_shares_one_config_and_metrics(env_config):
    config = ConfigManager(env_config)

    services = build_services(config, configure_logging=False)

    assert services.config is config
    assert services.service.config_manager is config
    assert services.service.metrics is services.metrics
    assert services.service.adapters == ADAPTERS
    assert services.service.is_initialized is False
    assert services.validation.get_rules("free").max_blueprints == 3
