import logging
import uuid
from typing import Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils.errors import UpstreamError

logger = logging.getLogger(__name__)


class S3Service:
    def __init__(self, bucket_name: str, client: boto3.client):
        """
        Initialize the S3 service with bucket name and a boto3 client
        """
        self.bucket_name = bucket_name
        self.s3 = client

    @staticmethod
    def generate_key(extension: str) -> str:
        """Globally unique object key for a new image"""
        return f"{uuid.uuid4()}.{extension}"

    def object_url(self, key: str) -> str:
        region = self.s3.meta.region_name
        return f"https://{self.bucket_name}.s3.{region}.amazonaws.com/{key}"

    async def upload_image(self, data: bytes, key: str, content_type: str) -> Dict[str, str]:
        """
        Upload image bytes to S3

        Args:
            data: The decoded image
            key: Object key, see `generate_key`
            content_type: MIME type stored with the object

        Returns:
            Dict with the public `location` of the object and its `key`

        Raises:
            UpstreamError: If S3 rejects the upload, carrying S3's message
        """
        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload error for key %s: %s", key, e)
            raise UpstreamError(str(e))

        return {"location": self.object_url(key), "key": key}

    async def delete_file(self, key: str) -> None:
        """
        Delete an object from S3

        Raises:
            UpstreamError: If S3 rejects the delete
        """
        try:
            self.s3.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 delete error for key %s: %s", key, e)
            raise UpstreamError(str(e))
