"""Monitor Agent.

Samples deployment metrics and raises alerts on fixed thresholds.
"""

from integrations.metrics import MetricsSampler
from schemas.decisions import MonitoringDecision, MonitoringMetrics
from schemas.requests import MonitorRequest

from .base import BaseAgent

CPU_ALERT_THRESHOLD = 80
ERROR_RATE_ALERT_THRESHOLD = 3


def metric_alerts(metrics: MonitoringMetrics) -> list[str]:
    """Alerts for metrics strictly above their thresholds."""
    alerts = []
    if metrics.cpu_usage > CPU_ALERT_THRESHOLD:
        alerts.append("High CPU usage detected")
    if metrics.error_rate > ERROR_RATE_ALERT_THRESHOLD:
        alerts.append("Elevated error rate detected")
    return alerts


class MonitorAgent(BaseAgent):
    """Agent for post-deployment health checks."""

    name = "monitor"
    title = "Monitoring"
    request_model = MonitorRequest

    def __init__(
        self,
        sampler: MetricsSampler,
        monitoring_url: str = "https://monitoring.example.com/dashboard",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.sampler = sampler
        self.monitoring_url = monitoring_url.rstrip("/")

    def run(self, request: MonitorRequest) -> MonitoringDecision:
        metrics = self.sampler.sample(request.deployment_id, request.environment)
        alerts = metric_alerts(metrics)
        if alerts:
            self.logger.warning("%s: %s", request.deployment_id, "; ".join(alerts))

        return MonitoringDecision(
            deployment_id=request.deployment_id,
            environment=request.environment,
            status="healthy",
            metrics=metrics,
            dashboard_url=f"{self.monitoring_url}/{request.deployment_id}",
            alerts=alerts,
            monitoring_duration=f"{request.monitoring_duration}s",
            timestamp=self._timestamp(),
        )
