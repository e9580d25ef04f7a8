from .anomaly_detector import detect_anomalies, find_anomalous_indices, indicator_series, score_cutoff
from .exceptions import (
    AnomalyPipelineError,
    ConfigurationError,
    ExternalServiceError,
    InvalidInput,
    SerializationError,
)

__version__ = '0.1'
