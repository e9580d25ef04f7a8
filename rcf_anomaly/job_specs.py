"""
Request payloads for the SageMaker Random Cut Forest training and batch
transform jobs.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict

from .exceptions import ConfigurationError
from .models.config import TrainingConfig, TransformConfig

log = logging.getLogger(__name__)

ALGORITHM = 'randomcutforest'
ALGORITHM_NAME = 'random-cut-forest'
IMAGE_TAG = '1'

S3_PREFIX = 's3://'
S3_DATA_TYPE = 'S3Prefix'
CSV_CONTENT_TYPE = 'text/csv;label_size=0'

TRAINING_INPUT_MODE = 'File'
TRAINING_CHANNEL_NAME = 'train'
TRAINING_DISTRIBUTION_TYPE = 'ShardedByS3Key'
TRAINING_JOB_MAX_RUNTIME_IN_SECONDS = 20 * 60
FEATURE_DIM = '1'  # One-dimensional metric values
MODEL_PREFIX = '/models/'
MODEL_SUFFIX = '/output/model.tar.gz'

TRANSFORM_OUTPUT_PATH_PREFIX = 'data/transform/output/values/'
TRANSFORM_OUTPUT_FILE_SUFFIX = '.out'
TRANSFORM_OUTPUT_ACCEPT = 'application/jsonlines'
TRANSFORM_SPLIT_TYPE = 'Line'

REGISTRY_PATHS = {
    'us-west-1': '632365934929.dkr.ecr.us-west-1.amazonaws.com',
    'us-west-2': '174872318107.dkr.ecr.us-west-2.amazonaws.com',
    'us-east-1': '382416733822.dkr.ecr.us-east-1.amazonaws.com',
    'us-east-2': '404615174143.dkr.ecr.us-east-2.amazonaws.com',
    'ap-northeast-1': '351501993468.dkr.ecr.ap-northeast-1.amazonaws.com',
    'ap-northeast-2': '835164637446.dkr.ecr.ap-northeast-2.amazonaws.com',
    'ap-south-1': '991648021394.dkr.ecr.ap-south-1.amazonaws.com',
    'ap-southeast-1': '475088953585.dkr.ecr.ap-southeast-1.amazonaws.com',
    'ap-southeast-2': '712309505854.dkr.ecr.ap-southeast-2.amazonaws.com',
    'ca-central-1': '469771592824.dkr.ecr.ca-central-1.amazonaws.com',
    'eu-central-1': '664544806723.dkr.ecr.eu-central-1.amazonaws.com',
    'eu-west-1': '438346466558.dkr.ecr.eu-west-1.amazonaws.com',
    'eu-west-2': '644912444149.dkr.ecr.eu-west-2.amazonaws.com',
}


def algorithm_image(region: str) -> str:
    """Returns the Random Cut Forest container image for the region."""
    registry_path = REGISTRY_PATHS.get(region)
    if registry_path is None:
        raise ConfigurationError(f"Random Cut Forest is not available in region {region!r}")
    log.info("Registry path for region %s is: %s", region, registry_path)
    return f"{registry_path}/{ALGORITHM}:{IMAGE_TAG}"


def job_name(timestamp: str) -> str:
    return f"{ALGORITHM_NAME}-{timestamp}"


@dataclass
class TrainingJobSpec:
    timestamp: str
    bucket: str
    values_key: str
    config: TrainingConfig

    @property
    def job_name(self) -> str:
        return job_name(self.timestamp)

    @property
    def model_output_path_prefix(self) -> str:
        # e.g. s3://test-bucket/models/
        return S3_PREFIX + self.bucket + MODEL_PREFIX

    @property
    def model_output_path(self) -> str:
        # e.g. s3://test-bucket/models/random-cut-forest-123456789/output/model.tar.gz
        return self.model_output_path_prefix + self.job_name + MODEL_SUFFIX

    def request(self) -> Dict[str, Any]:
        """Keyword arguments for SageMaker CreateTrainingJob."""
        return {
            'TrainingJobName': self.job_name,
            'AlgorithmSpecification': {
                'TrainingImage': algorithm_image(self.config.region),
                'TrainingInputMode': TRAINING_INPUT_MODE
            },
            'HyperParameters': {
                'feature_dim': FEATURE_DIM,
                'num_trees': str(self.config.num_trees),
                'num_samples_per_tree': str(self.config.num_samples_per_tree)
            },
            'InputDataConfig': [{
                'ChannelName': TRAINING_CHANNEL_NAME,
                'ContentType': CSV_CONTENT_TYPE,
                'DataSource': {
                    'S3DataSource': {
                        'S3DataType': S3_DATA_TYPE,
                        'S3Uri': f"{S3_PREFIX}{self.bucket}/{self.values_key}",
                        'S3DataDistributionType': TRAINING_DISTRIBUTION_TYPE
                    }
                }
            }],
            'OutputDataConfig': {'S3OutputPath': self.model_output_path_prefix},
            'ResourceConfig': {
                'InstanceCount': self.config.instance_count,
                'InstanceType': self.config.instance_type,
                'VolumeSizeInGB': self.config.volume_size_in_gb
            },
            'RoleArn': self.config.role_arn,
            'StoppingCondition': {'MaxRuntimeInSeconds': TRAINING_JOB_MAX_RUNTIME_IN_SECONDS}
        }


@dataclass
class TransformJobSpec:
    timestamp: str
    bucket: str
    values_key: str
    values_file: str
    model_name: str
    config: TransformConfig

    @property
    def job_name(self) -> str:
        return job_name(self.timestamp)

    @property
    def anomaly_scores_key_prefix(self) -> str:
        # e.g. data/transform/output/values/123456789/
        return TRANSFORM_OUTPUT_PATH_PREFIX + self.timestamp + '/'

    @property
    def anomaly_scores_key(self) -> str:
        # Batch transform names each output after its input file plus '.out'
        return self.anomaly_scores_key_prefix + self.values_file + TRANSFORM_OUTPUT_FILE_SUFFIX

    def request(self) -> Dict[str, Any]:
        """Keyword arguments for SageMaker CreateTransformJob."""
        return {
            'TransformJobName': self.job_name,
            'ModelName': self.model_name,
            'TransformInput': {
                'DataSource': {
                    'S3DataSource': {
                        'S3DataType': S3_DATA_TYPE,
                        'S3Uri': f"{S3_PREFIX}{self.bucket}/{self.values_key}"
                    }
                },
                'ContentType': CSV_CONTENT_TYPE,
                'CompressionType': 'None',
                'SplitType': TRANSFORM_SPLIT_TYPE
            },
            'TransformOutput': {
                'S3OutputPath': f"{S3_PREFIX}{self.bucket}/{self.anomaly_scores_key_prefix}",
                'Accept': TRANSFORM_OUTPUT_ACCEPT,
                'AssembleWith': TRANSFORM_SPLIT_TYPE
            },
            'TransformResources': {
                'InstanceCount': self.config.instance_count,
                'InstanceType': self.config.instance_type
            }
        }
