from typing import Literal, Mapping, Optional

from pydantic import AliasChoices, Field, PositiveInt, ValidationError
from pydantic_settings import BaseSettings

from ..exceptions import ConfigurationError

S3_BUCKET_NAME = 'S3_BUCKET_NAME'

CLOUDWATCH_NAMESPACE = 'CLOUDWATCH_NAMESPACE'
CLOUDWATCH_METRIC_NAME = 'CLOUDWATCH_METRIC_NAME'
CLOUDWATCH_METRIC_STATISTIC = 'CLOUDWATCH_METRIC_STATISTIC'
CLOUDWATCH_METRIC_PERIOD_IN_SECONDS = 'CLOUDWATCH_METRIC_PERIOD_IN_SECONDS'

SAGEMAKER_ROLE_ARN = 'SAGEMAKER_ROLE_ARN'
SAGEMAKER_TRAINING_INSTANCE_COUNT = 'SAGEMAKER_TRAINING_INSTANCE_COUNT'
SAGEMAKER_TRAINING_INSTANCE_TYPE = 'SAGEMAKER_TRAINING_INSTANCE_TYPE'
SAGEMAKER_TRAINING_VOLUME_SIZE = 'SAGEMAKER_TRAINING_VOLUME_SIZE'
SAGEMAKER_TRAINING_NUM_TREES = 'SAGEMAKER_TRAINING_NUM_TREES'
SAGEMAKER_TRAINING_NUM_SAMPLES_PER_TREE = 'SAGEMAKER_TRAINING_NUM_SAMPLES_PER_TREE'
SAGEMAKER_TRANSFORM_INSTANCE_COUNT = 'SAGEMAKER_TRANSFORM_INSTANCE_COUNT'
SAGEMAKER_TRANSFORM_INSTANCE_TYPE = 'SAGEMAKER_TRANSFORM_INSTANCE_TYPE'

AWS_DEFAULT_REGION = 'AWS_DEFAULT_REGION'
AWS_REGION = 'AWS_REGION'

Statistic = Literal['SampleCount', 'Average', 'Sum', 'Minimum', 'Maximum']


def describe_errors(exc: ValidationError) -> str:
    return '; '.join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


class EnvConfig(BaseSettings):
    """
    Settings read from the Lambda environment. Field aliases are the
    environment variable names; fields can also be set by name.
    """

    model_config = {
        'extra': 'ignore',
        'frozen': True,
        'populate_by_name': True,
        'str_strip_whitespace': True,
    }

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None):
        try:
            if environ is None:
                return cls()
            return cls.model_validate(dict(environ))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid {cls.__name__}: {describe_errors(exc)}") from exc


class StorageConfig(EnvConfig):
    """Configuration for the S3 bucket holding series, scores and models."""
    bucket: str = Field(alias=S3_BUCKET_NAME, min_length=1)


class MetricConfig(EnvConfig):
    """Configuration for the CloudWatch metric being monitored."""
    namespace: str = Field(alias=CLOUDWATCH_NAMESPACE, min_length=1)
    metric_name: str = Field(alias=CLOUDWATCH_METRIC_NAME, min_length=1)
    statistic: Statistic = Field(alias=CLOUDWATCH_METRIC_STATISTIC)
    period_in_seconds: PositiveInt = Field(alias=CLOUDWATCH_METRIC_PERIOD_IN_SECONDS)


class TrainingConfig(EnvConfig):
    """Configuration for the Random Cut Forest training job."""
    role_arn: str = Field(alias=SAGEMAKER_ROLE_ARN, min_length=1)
    instance_count: PositiveInt = Field(alias=SAGEMAKER_TRAINING_INSTANCE_COUNT)
    instance_type: str = Field(alias=SAGEMAKER_TRAINING_INSTANCE_TYPE, min_length=1)
    volume_size_in_gb: PositiveInt = Field(alias=SAGEMAKER_TRAINING_VOLUME_SIZE)
    num_trees: PositiveInt = Field(alias=SAGEMAKER_TRAINING_NUM_TREES)
    num_samples_per_tree: PositiveInt = Field(alias=SAGEMAKER_TRAINING_NUM_SAMPLES_PER_TREE)
    # Lambda sets both; AWS_DEFAULT_REGION wins
    region: str = Field(validation_alias=AliasChoices(AWS_DEFAULT_REGION, AWS_REGION), min_length=1)


class TransformConfig(EnvConfig):
    """Configuration for the batch transform job."""
    instance_count: PositiveInt = Field(alias=SAGEMAKER_TRANSFORM_INSTANCE_COUNT)
    instance_type: str = Field(alias=SAGEMAKER_TRANSFORM_INSTANCE_TYPE, min_length=1)
