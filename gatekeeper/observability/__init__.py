"""Observability layer: metrics and failure classification. No external SaaS."""

from gatekeeper.observability.failure_classifier import FailureClassifier
from gatekeeper.observability.metrics import MetricsCollector

__all__ = [
    "FailureClassifier",
    "MetricsCollector",
]
