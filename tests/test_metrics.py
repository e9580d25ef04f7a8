import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from botocore.exceptions import EndpointConnectionError

from rcf_anomaly.exceptions import ExternalServiceError
from rcf_anomaly.metrics import CloudWatchMetrics, from_millis, to_millis
from rcf_anomaly.models.anomaly import AnomalyResult, DataPoint, MetricDatum
from rcf_anomaly.models.config import MetricConfig


def datapoint(minute, value, end_time):
    return {'Timestamp': end_time - timedelta(minutes=minute), 'Average': value, 'Unit': 'Percent'}


class TestCloudWatchMetrics(unittest.TestCase):
    """Test suite for reading and publishing CloudWatch statistics."""

    def setUp(self):
        self.cloudwatch_client = Mock()
        self.config = MetricConfig(
            namespace='AWS/EC2',
            metric_name='CPUUtilization',
            statistic='Average',
            period_in_seconds=60
        )
        self.metrics = CloudWatchMetrics(self.config, self.cloudwatch_client)
        self.end_time = datetime(2021, 3, 1, tzinfo=timezone.utc)

    def test_number_of_requests(self):
        # 1440 one minute datapoints per day, one request each
        self.assertEqual(self.metrics.number_of_requests(1), 1)
        self.assertEqual(self.metrics.number_of_requests(30), 30)

    def test_number_of_requests_rounds_up(self):
        metrics = CloudWatchMetrics(
            MetricConfig(namespace='AWS/EC2', metric_name='CPUUtilization', statistic='Average', period_in_seconds=300),
            self.cloudwatch_client
        )

        # 288 datapoints per day, 7 days = 2016 datapoints
        self.assertEqual(metrics.number_of_requests(7), 2)
        self.assertEqual(metrics.number_of_requests(1), 1)

    def test_number_of_requests_for_period_longer_than_range(self):
        metrics = CloudWatchMetrics(
            MetricConfig(namespace='AWS/EC2', metric_name='CPUUtilization', statistic='Average', period_in_seconds=2 * 86400),
            self.cloudwatch_client
        )

        self.assertEqual(metrics.number_of_requests(1), 0)

    def test_request_windows_walk_backwards_without_gaps(self):
        windows = self.metrics.request_windows(3, self.end_time)

        self.assertEqual(len(windows), 3)
        self.assertEqual(windows[0], (self.end_time - timedelta(days=1), self.end_time))
        for newer, older in zip(windows, windows[1:]):
            self.assertEqual(older[1], newer[0])
        self.assertEqual(windows[-1][0], self.end_time - timedelta(days=3))

    def test_query_statistics(self):
        self.cloudwatch_client.get_metric_statistics.return_value = {
            'Label': 'CPUUtilization',
            'Datapoints': [datapoint(1, 10.5, self.end_time)]
        }
        start_time = self.end_time - timedelta(days=1)

        points = self.metrics.query_statistics(
            'CPUUtilization', 'AWS/EC2', 'Average', 60, start_time, self.end_time
        )

        self.cloudwatch_client.get_metric_statistics.assert_called_once_with(
            Namespace='AWS/EC2',
            MetricName='CPUUtilization',
            Statistics=['Average'],
            Period=60,
            StartTime=start_time,
            EndTime=self.end_time
        )
        self.assertEqual(points, [DataPoint(timestamp=1614556740000, value=10.5)])

    def test_query_statistics_reads_configured_statistic(self):
        self.cloudwatch_client.get_metric_statistics.return_value = {
            'Datapoints': [{'Timestamp': self.end_time, 'Maximum': 99.0}]
        }

        points = self.metrics.query_statistics(
            'CPUUtilization', 'AWS/EC2', 'Maximum', 60, self.end_time - timedelta(hours=1), self.end_time
        )

        self.assertEqual(points[0].value, 99.0)

    def test_get_datapoints_sorts_across_requests(self):
        self.cloudwatch_client.get_metric_statistics.side_effect = [
            {'Datapoints': [datapoint(2, 12.0, self.end_time), datapoint(5, 11.0, self.end_time)]},
            {'Datapoints': [datapoint(1500, 9.0, self.end_time), datapoint(1450, 10.0, self.end_time)]},
        ]

        points = self.metrics.get_datapoints(2, end_time=self.end_time)

        self.assertEqual(self.cloudwatch_client.get_metric_statistics.call_count, 2)
        self.assertEqual([p.value for p in points], [9.0, 10.0, 11.0, 12.0])
        timestamps = [p.timestamp for p in points]
        self.assertEqual(timestamps, sorted(timestamps))

    def test_anomaly_indicator_data(self):
        results = [
            AnomalyResult(timestamp=1614556800000, anomaly_score=0.5, is_anomaly=False),
            AnomalyResult(timestamp=1614556860000, anomaly_score=4.2, is_anomaly=True),
        ]

        self.assertEqual(self.metrics.anomaly_indicator_data(results), [
            MetricDatum('CPUUtilizationAnomalyIndicator', 1614556800000, 0.0),
            MetricDatum('CPUUtilizationAnomalyIndicator', 1614556860000, 1.0),
        ])

    def test_publish_statistics_partitions_batches(self):
        metric_data = [
            MetricDatum('CPUUtilizationAnomalyIndicator', 1614556800000 + i * 60000, 0.0)
            for i in range(250)
        ]

        requests = self.metrics.publish_statistics('AWS/EC2', metric_data)

        self.assertEqual(requests, 3)
        calls = self.cloudwatch_client.put_metric_data.call_args_list
        self.assertEqual([len(c.kwargs['MetricData']) for c in calls], [100, 100, 50])
        self.assertTrue(all(c.kwargs['Namespace'] == 'AWS/EC2' for c in calls))

        first = calls[0].kwargs['MetricData'][0]
        self.assertEqual(first, {
            'MetricName': 'CPUUtilizationAnomalyIndicator',
            'Timestamp': datetime(2021, 3, 1, tzinfo=timezone.utc),
            'Value': 0.0,
            'StorageResolution': 60
        })

    def test_publish_small_payload_in_one_request(self):
        metric_data = [MetricDatum('CPUUtilizationAnomalyIndicator', 1614556800000, 1.0)]

        self.assertEqual(self.metrics.publish_statistics('AWS/EC2', metric_data), 1)
        self.cloudwatch_client.put_metric_data.assert_called_once()

    def test_publish_exactly_one_full_batch(self):
        metric_data = [
            MetricDatum('CPUUtilizationAnomalyIndicator', 1614556800000 + i * 60000, 0.0)
            for i in range(100)
        ]

        self.assertEqual(self.metrics.publish_statistics('AWS/EC2', metric_data), 1)
        self.cloudwatch_client.put_metric_data.assert_called_once()
        self.assertEqual(len(self.cloudwatch_client.put_metric_data.call_args.kwargs['MetricData']), 100)

    def test_publish_one_past_a_full_batch(self):
        metric_data = [
            MetricDatum('CPUUtilizationAnomalyIndicator', 1614556800000 + i * 60000, 0.0)
            for i in range(101)
        ]

        self.assertEqual(self.metrics.publish_statistics('AWS/EC2', metric_data), 2)
        calls = self.cloudwatch_client.put_metric_data.call_args_list
        self.assertEqual([len(c.kwargs['MetricData']) for c in calls], [100, 1])
        self.assertEqual(calls[1].kwargs['MetricData'][0]['Timestamp'], from_millis(1614556800000 + 100 * 60000))

    def test_publish_nothing(self):
        self.assertEqual(self.metrics.publish_statistics('AWS/EC2', []), 0)
        self.cloudwatch_client.put_metric_data.assert_not_called()

    def test_connection_errors_become_external_service_errors(self):
        self.cloudwatch_client.put_metric_data.side_effect = EndpointConnectionError(
            endpoint_url='https://monitoring.us-east-1.amazonaws.com'
        )

        with self.assertRaises(ExternalServiceError) as raised:
            self.metrics.publish_statistics('AWS/EC2', [MetricDatum('m', 1614556800000, 1.0)])

        self.assertEqual(raised.exception.service, 'cloudwatch')

    def test_millis_conversion(self):
        self.assertEqual(to_millis(self.end_time), 1614556800000)
        self.assertEqual(from_millis(1614556800000), self.end_time)


if __name__ == '__main__':
    unittest.main()
