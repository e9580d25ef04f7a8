from dataclasses import dataclass


@dataclass
class DataPoint:
    """Class representing a time series data point."""
    timestamp: int  # Unix timestamp in milliseconds
    value: float


@dataclass
class AnomalyResult:
    """Class representing a classified anomaly score."""
    timestamp: int  # Unix timestamp in milliseconds
    anomaly_score: float
    is_anomaly: bool

    @property
    def indicator(self) -> float:
        return 1.0 if self.is_anomaly else 0.0


@dataclass
class MetricDatum:
    """Class representing a single value published to CloudWatch."""
    metric_name: str
    timestamp: int  # Unix timestamp in milliseconds
    value: float
