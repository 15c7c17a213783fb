"""Prometheus metrics for vehicle operations, slot conflicts and risk outcomes"""

from prometheus_client import Counter, Histogram

# Vehicle lifecycle metrics
vehicle_operation_counter = Counter(
    "moto_fleet_vehicle_operations_total",
    "Vehicle lifecycle operations",
    ["operation", "outcome"],  # create|update|delete|score, ok|not_found|conflict|invalid|error
)

slot_conflict_counter = Counter(
    "moto_fleet_slot_conflicts_total",
    "Writes refused because the target yard was full",
)

# Risk scoring metrics
risk_assessment_counter = Counter(
    "moto_fleet_risk_assessments_total",
    "Maintenance risk assessments by urgency tier and scorer",
    ["urgency_tier", "source"],  # None|Low|Medium|High, model|rules
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_vehicle_operation(operation: str, outcome: str) -> None:
    vehicle_operation_counter.labels(operation=operation, outcome=outcome).inc()


def record_risk_assessment(urgency_tier: str, source: str) -> None:
    """Record urgency distribution so drift towards High shows up on dashboards"""
    risk_assessment_counter.labels(urgency_tier=urgency_tier, source=source).inc()
