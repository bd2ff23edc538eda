"""Deployment metrics sampling.

There is no monitoring backend to query; metrics are drawn from the
injected random source so the alert rules can be exercised exactly.
"""

import random

from schemas.decisions import MonitoringMetrics


class MetricsSampler:
    """Draws one metrics block per call.

    Sample order is fixed: cpu, memory, response time, error rate.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def sample(self, deployment_id: str, environment: str | None = None) -> MonitoringMetrics:
        return MonitoringMetrics(
            cpu_usage=self.rng.random() * 100,
            memory_usage=self.rng.random() * 100,
            response_time=self.rng.random() * 1000,
            error_rate=self.rng.random() * 5,
        )
