import logging
from enum import Enum
from typing import Any, Dict

import boto3

from .exceptions import ExternalServiceError, InvalidInput, external_call

log = logging.getLogger(__name__)

TRAINING = 'training'
TRANSFORM = 'transform'


class JobStatus(str, Enum):
    IN_PROGRESS = 'InProgress'
    COMPLETED = 'Completed'
    FAILED = 'Failed'
    STOPPING = 'Stopping'
    STOPPED = 'Stopped'

    @classmethod
    def parse(cls, value: str, operation: str) -> 'JobStatus':
        try:
            return cls(value)
        except ValueError:
            raise ExternalServiceError('sagemaker', operation, f"unknown job status {value!r}") from None


class SageMakerJobs:
    def __init__(self, sagemaker_client=None):
        self.sagemaker_client = sagemaker_client or boto3.client('sagemaker')

    @external_call('sagemaker')
    def submit_training_job(self, request: Dict[str, Any]) -> str:
        name = request['TrainingJobName']
        log.info("Starting sagemaker training job: %s", name)
        log.debug("Full training job request is: %s", request)
        self.sagemaker_client.create_training_job(**request)
        return name

    @external_call('sagemaker')
    def submit_batch_job(self, request: Dict[str, Any]) -> str:
        name = request['TransformJobName']
        log.info("Starting sagemaker transform job: %s", name)
        log.debug("Full transform job request is: %s", request)
        self.sagemaker_client.create_transform_job(**request)
        return name

    @external_call('sagemaker')
    def get_training_job_status(self, name: str) -> JobStatus:
        response = self.sagemaker_client.describe_training_job(TrainingJobName=name)
        status = JobStatus.parse(response['TrainingJobStatus'], 'get_training_job_status')
        log.info("Training job %s status is: %s", name, status.value)
        return status

    @external_call('sagemaker')
    def get_transform_job_status(self, name: str) -> JobStatus:
        response = self.sagemaker_client.describe_transform_job(TransformJobName=name)
        status = JobStatus.parse(response['TransformJobStatus'], 'get_transform_job_status')
        log.info("Transform job %s status is: %s", name, status.value)
        return status

    def get_job_status(self, name: str, kind: str = TRAINING) -> JobStatus:
        if kind == TRAINING:
            return self.get_training_job_status(name)
        if kind == TRANSFORM:
            return self.get_transform_job_status(name)
        raise InvalidInput(f"Unknown job kind: {kind!r}")

    @external_call('sagemaker')
    def latest_model_name(self, name_prefix: str) -> str:
        """
        Lists the models whose name contains name_prefix and returns the most
        recently created one.
        """
        response = self.sagemaker_client.list_models(
            NameContains=name_prefix,
            MaxResults=1,
            SortBy='CreationTime',
            SortOrder='Descending'
        )
        models = response.get('Models', [])
        if not models:
            raise ExternalServiceError('sagemaker', 'latest_model_name', f"no model named like {name_prefix!r}")
        return models[0]['ModelName']
