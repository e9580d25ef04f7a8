import logging
from dataclasses import dataclass
from typing import List

import boto3

from .exceptions import SerializationError, external_call

log = logging.getLogger(__name__)

VALUES = 'values'
TIMESTAMPS = 'timestamps'
FILE_SUFFIX = '.csv'


@dataclass(frozen=True)
class DataUploadLocation:
    """Where an uploaded series lives in S3."""
    bucket: str
    job_type: str  # 'train' or 'transform'
    timestamp: str
    kind: str  # VALUES or TIMESTAMPS

    @property
    def key_prefix(self) -> str:
        return f"data/{self.job_type}/input/{self.kind}/{self.timestamp}/"

    @property
    def file_name(self) -> str:
        return self.kind + FILE_SUFFIX

    @property
    def key(self) -> str:
        return self.key_prefix + self.file_name


class S3FileManager:
    def __init__(self, s3_client=None):
        self.s3_client = s3_client or boto3.client('s3')

    @external_call('s3')
    def get_lines(self, bucket: str, key: str) -> List[str]:
        """
        Downloads an object and splits its content into lines.

        Args:
            bucket: S3 bucket containing the object
            key: S3 key (file name)

        Returns:
            List of lines without line terminators
        """
        response = self.s3_client.get_object(Bucket=bucket, Key=key)
        content = response['Body'].read()
        try:
            text = content.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise SerializationError(f"s3://{bucket}/{key} is not UTF-8 text: {exc}") from exc

        lines = text.splitlines()
        log.info("Retrieved total of: %d lines from s3://%s/%s", len(lines), bucket, key)
        return lines

    @external_call('s3')
    def put_object(self, bucket: str, key: str, content: str) -> None:
        self.s3_client.put_object(Bucket=bucket, Key=key, Body=content.encode('utf-8'))
        log.info("Uploaded s3://%s/%s", bucket, key)
