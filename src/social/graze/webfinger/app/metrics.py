"""
Metrics Abstraction Layer for the WebFinger Service

This module provides a small vendor-agnostic metrics interface so request handling and the
configuration reload task can report counters, gauges and timings without knowing which
backend is configured.

Key Components:
- MetricsClient: Abstract interface for all metrics operations
- TelegrafCompatibilityClient: Wrapper for aio-statsd's TelegrafStatsdClient
- NoOpMetricsClient: No-operation client for disabled metrics
- create_metrics_client: Factory function for backend selection
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Union

from aio_statsd import TelegrafStatsdClient

logger = logging.getLogger(__name__)


class MetricsClient(ABC):
    """
    Abstract metrics client interface.

    All implementations support counters, gauges and timers, with StatsD-style tag
    dictionaries.
    """

    @abstractmethod
    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Increment a counter metric by the specified value.

        Args:
            name: Metric name (e.g., 'webfinger.server.request.count')
            value: Amount to increment by (default: 1)
            tag_dict: Optional tags for metric dimensions
        """
        pass

    @abstractmethod
    def gauge(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Set a gauge metric to the specified value.

        Args:
            name: Metric name (e.g., 'webfinger.config.resources')
            value: Current value to set
            tag_dict: Optional tags for metric dimensions
        """
        pass

    @abstractmethod
    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Record a duration in seconds.

        Args:
            name: Metric name (e.g., 'webfinger.config.reload.time')
            value: Duration in seconds
            tag_dict: Optional tags for metric dimensions
        """
        pass

    async def connect(self) -> None:
        """Open any network resources the client needs."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the metrics client and flush any pending metrics."""
        pass


class TelegrafCompatibilityClient(MetricsClient):
    """
    MetricsClient over an aio-statsd TelegrafStatsdClient.

    Calls are delegated unchanged, so metric names and tags look the same as when the
    TelegrafStatsdClient is used directly.
    """

    def __init__(self, telegraf_client: Any):
        self.client = telegraf_client

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.increment(name, value, tag_dict=tag_dict or {})

    def gauge(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.gauge(name, value, tag_dict=tag_dict or {})

    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.client.timer(name, value, tag_dict=tag_dict or {})

    async def connect(self) -> None:
        await self.client.connect()

    async def close(self) -> None:
        try:
            await self.client.close()
        except Exception as e:
            logger.warning(f"Error closing Telegraf client: {e}")


class NoOpMetricsClient(MetricsClient):
    """
    No-operation metrics client for disabled metrics collection.

    Useful for tests, development, or when no metrics backend is deployed.
    """

    def increment(
        self,
        name: str,
        value: Union[int, float] = 1,
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    def timer(
        self,
        name: str,
        value: Union[int, float],
        tag_dict: Optional[Dict[str, Any]] = None,
    ) -> None:
        pass

    async def close(self) -> None:
        pass


def create_metrics_client(
    backend: str,
    host: str = "localhost",
    port: int = 8125,
    telegraf_client: Optional[Any] = None,
    debug: bool = False,
) -> MetricsClient:
    """
    Create the metrics client for a backend name.

    Args:
        backend: Backend type ('telegraf' or 'none')
        host: Telegraf/StatsD host
        port: Telegraf/StatsD port
        telegraf_client: Pre-configured TelegrafStatsdClient instance
        debug: Enable debug logging

    Returns:
        MetricsClient: Configured metrics client instance

    Raises:
        ValueError: If backend type is invalid
    """
    backend = backend.lower()

    if debug:
        logger.debug(f"Creating metrics client with backend: {backend}")

    if backend == "telegraf":
        if telegraf_client is None:
            telegraf_client = TelegrafStatsdClient(host=host, port=port, debug=debug)
        return TelegrafCompatibilityClient(telegraf_client)

    elif backend == "none":
        logger.info("Metrics collection disabled (no-op client)")
        return NoOpMetricsClient()

    raise ValueError(
        f"Invalid metrics backend: {backend}. Supported backends: 'telegraf', 'none'"
    )
