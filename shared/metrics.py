"""
Shared metrics configuration for the KeyAuth consumer.
"""

from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, generate_latest


class MetricsCollector:
    """Metrics collector bound to one service instance."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Each collector owns a registry so several apps can live in one process
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_consumer_metrics()

    def _setup_consumer_metrics(self):
        """Set up login-flow and provider metrics."""
        self._metrics["provider_requests_total"] = Counter(
            "provider_requests_total",
            "Total requests sent to identity providers",
            ["endpoint", "outcome"],
            registry=self.registry
        )

        self._metrics["provider_request_duration_seconds"] = Histogram(
            "provider_request_duration_seconds",
            "Provider request duration in seconds",
            ["endpoint"],
            registry=self.registry
        )

        self._metrics["login_outcomes_total"] = Counter(
            "login_outcomes_total",
            "Login flow states reached, redirects and callback outcomes",
            ["state"],
            registry=self.registry
        )

        self._metrics["logouts_total"] = Counter(
            "logouts_total",
            "Total session invalidations",
            registry=self.registry
        )

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_provider_request(self, endpoint: str, outcome: str, duration: float):
        """Record one provider round trip."""
        self._metrics["provider_requests_total"].labels(endpoint=endpoint, outcome=outcome).inc()
        self._metrics["provider_request_duration_seconds"].labels(endpoint=endpoint).observe(duration)

    def record_login_outcome(self, state: str):
        """Record a login redirect or the terminal state of a callback."""
        self._metrics["login_outcomes_total"].labels(state=state).inc()

    def record_logout(self):
        """Record a session invalidation."""
        self._metrics["logouts_total"].inc()

    def sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Read the current value of a sample from the registry."""
        return self.registry.get_sample_value(name, labels or {})


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
