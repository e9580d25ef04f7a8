"""
Lambda handlers for the train and transform workflows.

Train: DataUploadHandler -> StartTrainingJobHandler -> CheckTrainingJobStatusHandler
Transform: DataUploadHandler -> StartTransformJobHandler ->
CheckTransformJobStatusHandler -> AnomalousDataUploadHandler

The workflow engine passes each step's output as the next step's input and
re-invokes the status checks until the job finishes.
"""
import logging
import os
import time
from typing import Any, Callable, Dict, Mapping

from . import codec
from .anomaly_detector import detect_anomalies
from .exceptions import ConfigurationError
from .job_specs import ALGORITHM_NAME, TrainingJobSpec, TransformJobSpec
from .jobs import JobStatus, SageMakerJobs
from .metrics import CloudWatchMetrics
from .models import events
from .models.config import MetricConfig, StorageConfig, TrainingConfig, TransformConfig
from .storage import TIMESTAMPS, VALUES, DataUploadLocation, S3FileManager

log = logging.getLogger(__name__)

LOG_LEVEL = 'LOG_LEVEL'


def configure_logging() -> None:
    level = os.environ.get(LOG_LEVEL, 'INFO').strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"Environment variable {LOG_LEVEL} is not a logging level: {level!r}")
    logging.basicConfig(level=level)
    logging.getLogger().setLevel(level)


class DataUploadHandler:
    """Reads the metric from CloudWatch and stores values and timestamps in S3."""

    def __init__(
            self,
            storage_config: StorageConfig,
            metrics: CloudWatchMetrics,
            files: S3FileManager,
            clock: Callable[[], float] = time.time
    ):
        self.storage_config = storage_config
        self.metrics = metrics
        self.files = files
        self.clock = clock

    def handle_request(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        request = events.DataUploadInput.from_event(event)
        data_points = self.metrics.get_datapoints(request.time_range_in_days)
        if not data_points:
            log.warning("No datapoints retrieved for the last %d days", request.time_range_in_days)

        timestamp = str(int(self.clock() * 1000))
        bucket = self.storage_config.bucket
        values = DataUploadLocation(bucket, request.job_type, timestamp, VALUES)
        timestamps = DataUploadLocation(bucket, request.job_type, timestamp, TIMESTAMPS)

        self.files.put_object(bucket, values.key, codec.format_lines(p.value for p in data_points))
        self.files.put_object(bucket, timestamps.key, codec.format_lines(p.timestamp for p in data_points))

        return events.merge_output(
            event,
            **{
                events.BUCKET: bucket,
                events.TIMESTAMP: timestamp,
                events.TIMESTAMPS_KEY: timestamps.key,
                events.VALUES_KEY: values.key_prefix,
                events.VALUES_FILE: values.file_name,
            }
        )


class StartTrainingJobHandler:
    def __init__(self, config: TrainingConfig, jobs: SageMakerJobs):
        self.config = config
        self.jobs = jobs

    def handle_request(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        request = events.TrainingJobInput.from_event(event)
        spec = TrainingJobSpec(request.timestamp, request.bucket, request.values_key, self.config)
        name = self.jobs.submit_training_job(spec.request())
        return events.merge_output(
            event,
            **{
                events.TRAINING_JOB_NAME: name,
                events.TRAINING_JOB_STATUS: JobStatus.IN_PROGRESS.value,
                events.MODEL_OUTPUT_PATH: spec.model_output_path,
            }
        )


class CheckTrainingJobStatusHandler:
    def __init__(self, jobs: SageMakerJobs):
        self.jobs = jobs

    def handle_request(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        state = events.TrainingJobState.from_event(event)
        status = self.jobs.get_training_job_status(state.training_job_name)
        return events.merge_output(event, **{events.TRAINING_JOB_STATUS: status.value})


class StartTransformJobHandler:
    """Starts a batch transform with the latest Random Cut Forest model."""

    def __init__(self, config: TransformConfig, jobs: SageMakerJobs):
        self.config = config
        self.jobs = jobs

    def handle_request(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        request = events.TransformJobInput.from_event(event)
        model_name = self.jobs.latest_model_name(ALGORITHM_NAME)
        log.info("Latest model name is: %s", model_name)

        spec = TransformJobSpec(
            request.timestamp, request.bucket, request.values_key,
            request.values_file, model_name, self.config
        )
        name = self.jobs.submit_batch_job(spec.request())
        return events.merge_output(
            event,
            **{
                events.MODEL_NAME: model_name,
                events.ANOMALY_SCORES_KEY: spec.anomaly_scores_key,
                events.TRANSFORM_JOB_NAME: name,
                events.TRANSFORM_JOB_STATUS: JobStatus.IN_PROGRESS.value,
            }
        )


class CheckTransformJobStatusHandler:
    def __init__(self, jobs: SageMakerJobs):
        self.jobs = jobs

    def handle_request(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        state = events.TransformJobState.from_event(event)
        status = self.jobs.get_transform_job_status(state.transform_job_name)
        return events.merge_output(event, **{events.TRANSFORM_JOB_STATUS: status.value})


class AnomalousDataUploadHandler:
    """
    Downloads anomaly scores and the original metric timestamps from S3, finds
    anomalies based on the 2 sigma cutoff and uploads an anomaly indicator
    metric to CloudWatch, where each anomalous datapoint has a value of 1.
    """

    def __init__(self, metric_config: MetricConfig, metrics: CloudWatchMetrics, files: S3FileManager):
        self.metric_config = metric_config
        self.metrics = metrics
        self.files = files

    def handle_request(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        request = events.AnomalousDataUploadInput.from_event(event)
        scores = codec.parse_score_lines(self.files.get_lines(request.bucket, request.anomaly_scores_key))
        timestamps = codec.parse_timestamp_lines(self.files.get_lines(request.bucket, request.timestamps_key))

        results = detect_anomalies(timestamps, scores)
        metric_data = self.metrics.anomaly_indicator_data(results)
        log.info("Created metric data with: %d metric datums", len(metric_data))
        self.metrics.publish_statistics(self.metric_config.namespace, metric_data)
        log.info("Successfully uploaded anomalous metrics.")

        anomalous = sum(1 for result in results if result.is_anomaly)
        return events.merge_output(event, **{events.ANOMALOUS_DATAPOINTS: anomalous})


# Lambda entry points. Configuration is resolved once per invocation.

def data_upload_handler(event, context):
    configure_logging()
    metric_config = MetricConfig.from_env()
    handler = DataUploadHandler(StorageConfig.from_env(), CloudWatchMetrics(metric_config), S3FileManager())
    return handler.handle_request(event)


def start_training_job_handler(event, context):
    configure_logging()
    return StartTrainingJobHandler(TrainingConfig.from_env(), SageMakerJobs()).handle_request(event)


def check_training_job_status_handler(event, context):
    configure_logging()
    return CheckTrainingJobStatusHandler(SageMakerJobs()).handle_request(event)


def start_transform_job_handler(event, context):
    configure_logging()
    return StartTransformJobHandler(TransformConfig.from_env(), SageMakerJobs()).handle_request(event)


def check_transform_job_status_handler(event, context):
    configure_logging()
    return CheckTransformJobStatusHandler(SageMakerJobs()).handle_request(event)


def anomalous_data_upload_handler(event, context):
    configure_logging()
    metric_config = MetricConfig.from_env()
    handler = AnomalousDataUploadHandler(metric_config, CloudWatchMetrics(metric_config), S3FileManager())
    return handler.handle_request(event)
