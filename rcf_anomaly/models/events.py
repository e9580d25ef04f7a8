"""
Flat JSON records exchanged between workflow steps.

Each step reads the fields it needs from the incoming event and returns the
same event with its own fields added, so any field it does not know about
travels on to the next step unchanged.
"""
from typing import Any, Dict, Literal, Mapping

from pydantic import BaseModel, Field, PositiveInt, ValidationError, field_validator

from ..exceptions import InvalidInput

JOB_TYPE = 'jobType'
TIME_RANGE_IN_DAYS = 'timeRangeInDays'
BUCKET = 'bucket'
TIMESTAMP = 'timestamp'
TIMESTAMPS_KEY = 'timestampsKey'
VALUES_KEY = 'valuesKey'
VALUES_FILE = 'valuesFile'
TRAINING_JOB_NAME = 'trainingJobName'
TRAINING_JOB_STATUS = 'trainingJobStatus'
MODEL_OUTPUT_PATH = 'modelOutputPath'
MODEL_NAME = 'modelName'
TRANSFORM_JOB_NAME = 'transformJobName'
TRANSFORM_JOB_STATUS = 'transformJobStatus'
ANOMALY_SCORES_KEY = 'anomalyScoresKey'
ANOMALOUS_DATAPOINTS = 'anomalousDatapoints'


class Event(BaseModel):
    model_config = {
        'extra': 'ignore',
        'populate_by_name': True,
        'coerce_numbers_to_str': True,
    }

    @classmethod
    def from_event(cls, event: Mapping[str, Any]):
        if not isinstance(event, Mapping):
            raise InvalidInput(f"Workflow event must be a JSON object, got {type(event).__name__}")
        try:
            return cls.model_validate(dict(event))
        except ValidationError as exc:
            problems = '; '.join(
                f"'{'.'.join(str(part) for part in error['loc'])}' {error['msg']}"
                for error in exc.errors()
            )
            raise InvalidInput(f"Invalid workflow event for {cls.__name__}: {problems}") from exc


def merge_output(event: Mapping[str, Any], **updates: Any) -> Dict[str, Any]:
    """Returns a copy of the event with the given fields set."""
    output = dict(event)
    output.update(updates)
    return output


class DataUploadInput(Event):
    job_type: Literal['train', 'transform'] = Field(alias=JOB_TYPE)
    time_range_in_days: PositiveInt = Field(alias=TIME_RANGE_IN_DAYS)

    @field_validator('time_range_in_days', mode='before')
    @classmethod
    def reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError('must be a number of days, not a boolean')
        return value


class TrainingJobInput(Event):
    bucket: str = Field(alias=BUCKET, min_length=1)
    timestamp: str = Field(alias=TIMESTAMP, min_length=1)
    values_key: str = Field(alias=VALUES_KEY, min_length=1)


class TrainingJobState(Event):
    training_job_name: str = Field(alias=TRAINING_JOB_NAME, min_length=1)


class TransformJobInput(Event):
    bucket: str = Field(alias=BUCKET, min_length=1)
    timestamp: str = Field(alias=TIMESTAMP, min_length=1)
    timestamps_key: str = Field(alias=TIMESTAMPS_KEY, min_length=1)
    values_key: str = Field(alias=VALUES_KEY, min_length=1)
    values_file: str = Field(alias=VALUES_FILE, min_length=1)


class TransformJobState(Event):
    transform_job_name: str = Field(alias=TRANSFORM_JOB_NAME, min_length=1)


class AnomalousDataUploadInput(Event):
    bucket: str = Field(alias=BUCKET, min_length=1)
    anomaly_scores_key: str = Field(alias=ANOMALY_SCORES_KEY, min_length=1)
    timestamps_key: str = Field(alias=TIMESTAMPS_KEY, min_length=1)
