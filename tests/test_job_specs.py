import unittest

from rcf_anomaly.exceptions import ConfigurationError
from rcf_anomaly.job_specs import TrainingJobSpec, TransformJobSpec, algorithm_image, job_name
from rcf_anomaly.models.config import TrainingConfig, TransformConfig


class TestJobSpecs(unittest.TestCase):

    def setUp(self):
        self.training_config = TrainingConfig(
            role_arn='arn:aws:iam::123456789012:role/sagemaker',
            instance_count=1,
            instance_type='ml.m4.xlarge',
            volume_size_in_gb=10,
            num_trees=50,
            num_samples_per_tree=200,
            region='us-west-2'
        )
        self.transform_config = TransformConfig(instance_count=2, instance_type='ml.m4.large')

    def test_algorithm_image(self):
        self.assertEqual(
            algorithm_image('us-east-1'),
            '382416733822.dkr.ecr.us-east-1.amazonaws.com/randomcutforest:1'
        )

    def test_unsupported_region_fails(self):
        with self.assertRaises(ConfigurationError):
            algorithm_image('sa-east-1')

    def test_job_name(self):
        self.assertEqual(job_name('123456789'), 'random-cut-forest-123456789')

    def test_training_request(self):
        spec = TrainingJobSpec('123456789', 'test-bucket', 'data/train/input/values/123456789/',
                               self.training_config)

        request = spec.request()

        self.assertEqual(request['TrainingJobName'], 'random-cut-forest-123456789')
        self.assertEqual(request['AlgorithmSpecification'], {
            'TrainingImage': '174872318107.dkr.ecr.us-west-2.amazonaws.com/randomcutforest:1',
            'TrainingInputMode': 'File'
        })
        self.assertEqual(request['HyperParameters'], {
            'feature_dim': '1', 'num_trees': '50', 'num_samples_per_tree': '200'
        })
        channel = request['InputDataConfig'][0]
        self.assertEqual(channel['ChannelName'], 'train')
        self.assertEqual(channel['ContentType'], 'text/csv;label_size=0')
        self.assertEqual(channel['DataSource']['S3DataSource'], {
            'S3DataType': 'S3Prefix',
            'S3Uri': 's3://test-bucket/data/train/input/values/123456789/',
            'S3DataDistributionType': 'ShardedByS3Key'
        })
        self.assertEqual(request['OutputDataConfig'], {'S3OutputPath': 's3://test-bucket/models/'})
        self.assertEqual(request['ResourceConfig'], {
            'InstanceCount': 1, 'InstanceType': 'ml.m4.xlarge', 'VolumeSizeInGB': 10
        })
        self.assertEqual(request['RoleArn'], 'arn:aws:iam::123456789012:role/sagemaker')
        self.assertEqual(request['StoppingCondition'], {'MaxRuntimeInSeconds': 1200})

    def test_model_output_path(self):
        spec = TrainingJobSpec('123456789', 'test-bucket', 'key', self.training_config)

        self.assertEqual(
            spec.model_output_path,
            's3://test-bucket/models/random-cut-forest-123456789/output/model.tar.gz'
        )

    def test_transform_request(self):
        spec = TransformJobSpec('123456789', 'test-bucket', 'data/transform/input/values/123456789/',
                                'values.csv', 'random-cut-forest-100', self.transform_config)

        request = spec.request()

        self.assertEqual(request['TransformJobName'], 'random-cut-forest-123456789')
        self.assertEqual(request['ModelName'], 'random-cut-forest-100')
        self.assertEqual(request['TransformInput'], {
            'DataSource': {'S3DataSource': {
                'S3DataType': 'S3Prefix',
                'S3Uri': 's3://test-bucket/data/transform/input/values/123456789/'
            }},
            'ContentType': 'text/csv;label_size=0',
            'CompressionType': 'None',
            'SplitType': 'Line'
        })
        self.assertEqual(request['TransformOutput'], {
            'S3OutputPath': 's3://test-bucket/data/transform/output/values/123456789/',
            'Accept': 'application/jsonlines',
            'AssembleWith': 'Line'
        })
        self.assertEqual(request['TransformResources'], {'InstanceCount': 2, 'InstanceType': 'ml.m4.large'})

    def test_anomaly_scores_key(self):
        spec = TransformJobSpec('123456789', 'test-bucket', 'key', 'values.csv', 'model',
                                self.transform_config)

        self.assertEqual(spec.anomaly_scores_key, 'data/transform/output/values/123456789/values.csv.out')


if __name__ == '__main__':
    unittest.main()
