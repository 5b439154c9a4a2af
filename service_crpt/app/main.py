"""
Composition root for the CRPT document client.

One gate and one client per process: ``get_crpt_api()`` builds them on
first use and returns the same instance afterwards.
"""

import threading
from typing import Optional

import httpx
from prometheus_client import CollectorRegistry

from shared.config import CrptConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.metrics import get_metrics_collector
from service_crpt.app.adapters.crpt_client import CrptApiClient
from service_crpt.app.ratelimit.gate import RateLimitedGate

logger = get_logger("crpt.main")

_instance: Optional[CrptApiClient] = None
_instance_lock = threading.Lock()


def create_crpt_api(config: Optional[CrptConfig] = None,
                    http_client: Optional[httpx.Client] = None,
                    registry: Optional[CollectorRegistry] = None) -> CrptApiClient:
    """Build a gate and a client from configuration."""
    config = config or get_config()
    metrics = get_metrics_collector(registry)

    gate = RateLimitedGate(
        config.window_seconds,
        config.request_limit,
        name=config.service_name,
        metrics=metrics
    )
    return CrptApiClient(
        gate,
        url=config.api_url,
        http_client=http_client,
        timeout_seconds=config.timeout_seconds,
        verify_tls=config.verify_tls,
        metrics=metrics
    )


def get_crpt_api(config: Optional[CrptConfig] = None) -> CrptApiClient:
    """Get the process-wide client, creating it on first use.

    ``config`` only matters for the first call; later calls return the
    existing instance and leave its window untouched.
    """
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                config = config or get_config()
                configure_logging(config.service_name, config.log_level)
                _instance = create_crpt_api(config)
                logger.info(
                    "CRPT client initialized",
                    env=config.env,
                    url=config.api_url,
                    request_limit=config.request_limit,
                    window_seconds=config.window_seconds
                )
    return _instance


def reset_crpt_api_for_tests() -> None:
    """Drop the process-wide client, closing its gate and transport."""
    global _instance
    with _instance_lock:
        if _instance is not None:
            _instance.close()
            _instance.gate.close()
        _instance = None
