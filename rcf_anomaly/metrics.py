import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Optional, Sequence, Tuple, TypeVar

import boto3

from .exceptions import external_call
from .models.anomaly import AnomalyResult, DataPoint, MetricDatum
from .models.config import MetricConfig

log = logging.getLogger(__name__)

ANOMALY_INDICATOR_SUFFIX = 'AnomalyIndicator'
STORAGE_RESOLUTION_IN_SECONDS = 60
NUMBER_OF_DATAPOINTS_PER_REQUEST = 1440  # GetMetricStatistics limit
NUMBER_OF_METRIC_DATUMS_PER_REQUEST = 100
SECONDS_PER_DAY = 86400

T = TypeVar('T')


def partition(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def to_millis(moment: datetime) -> int:
    return int(round(moment.timestamp() * 1000))


def from_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


class CloudWatchMetrics:
    def __init__(self, config: MetricConfig, cloudwatch_client=None):
        self.config = config
        self.cloudwatch_client = cloudwatch_client or boto3.client('cloudwatch')

    def number_of_requests(self, time_range_in_days: int) -> int:
        """
        Calculates how many GetMetricStatistics requests cover the time range,
        given the metric period and at most 1440 datapoints per request.
        """
        number_of_datapoints = time_range_in_days * SECONDS_PER_DAY // self.config.period_in_seconds
        return math.ceil(number_of_datapoints / NUMBER_OF_DATAPOINTS_PER_REQUEST)

    def request_windows(
            self,
            time_range_in_days: int,
            end_time: datetime
    ) -> List[Tuple[datetime, datetime]]:
        """
        Splits the time range ending at end_time into consecutive (start, end)
        windows, newest first, each holding at most 1440 datapoints.
        """
        delta = timedelta(seconds=NUMBER_OF_DATAPOINTS_PER_REQUEST * self.config.period_in_seconds)
        windows = []
        for _ in range(self.number_of_requests(time_range_in_days)):
            start_time = end_time - delta
            windows.append((start_time, end_time))
            end_time = start_time
        return windows

    @external_call('cloudwatch')
    def query_statistics(
            self,
            metric_name: str,
            namespace: str,
            statistic: str,
            period_seconds: int,
            start_time: datetime,
            end_time: datetime
    ) -> List[DataPoint]:
        response = self.cloudwatch_client.get_metric_statistics(
            Namespace=namespace,
            MetricName=metric_name,
            Statistics=[statistic],
            Period=period_seconds,
            StartTime=start_time,
            EndTime=end_time
        )
        return [
            DataPoint(timestamp=to_millis(datapoint['Timestamp']), value=float(datapoint[statistic]))
            for datapoint in response.get('Datapoints', [])
        ]

    def get_datapoints(self, time_range_in_days: int, end_time: Optional[datetime] = None) -> List[DataPoint]:
        """
        Retrieve the configured metric for the last time_range_in_days days.

        Args:
            time_range_in_days: Number of days to look back
            end_time: End of the time range, defaults to now

        Returns:
            List of DataPoint objects sorted by timestamp
        """
        end_time = end_time or datetime.now(timezone.utc)
        windows = self.request_windows(time_range_in_days, end_time)
        log.info("Calculated number of requests is: %d", len(windows))

        data_points: List[DataPoint] = []
        for start, end in windows:
            data_points.extend(self.query_statistics(
                metric_name=self.config.metric_name,
                namespace=self.config.namespace,
                statistic=self.config.statistic,
                period_seconds=self.config.period_in_seconds,
                start_time=start,
                end_time=end
            ))

        data_points.sort(key=lambda point: point.timestamp)
        log.info("Retrieved total of: %d datapoints.", len(data_points))
        return data_points

    def anomaly_indicator_data(self, results: Sequence[AnomalyResult]) -> List[MetricDatum]:
        metric_name = self.config.metric_name + ANOMALY_INDICATOR_SUFFIX
        return [
            MetricDatum(metric_name=metric_name, timestamp=result.timestamp, value=result.indicator)
            for result in results
        ]

    @external_call('cloudwatch')
    def publish_statistics(self, namespace: str, metric_data: Sequence[MetricDatum]) -> int:
        """
        Uploads metric data to CloudWatch in batches of at most 100 datums.

        Returns:
            Number of PutMetricData requests issued
        """
        requests = 0
        for batch in partition(metric_data, NUMBER_OF_METRIC_DATUMS_PER_REQUEST):
            self.cloudwatch_client.put_metric_data(
                Namespace=namespace,
                MetricData=[
                    {
                        'MetricName': datum.metric_name,
                        'Timestamp': from_millis(datum.timestamp),
                        'Value': datum.value,
                        'StorageResolution': STORAGE_RESOLUTION_IN_SECONDS
                    }
                    for datum in batch
                ]
            )
            requests += 1
        log.info("Total number of requests is: %d", requests)
        return requests
