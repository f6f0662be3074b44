"""
DynamoDB Repository for video metadata storage.
Writes video records to DynamoDB, refusing to overwrite an existing id.
"""
import uuid
import boto3
from botocore.exceptions import ClientError
from src.core import config
from src.core.exceptions import PersistenceError
from src.models.video_model import Video
from src.repositories.db_repository import DBRepository


class DynamoRepository(DBRepository):
    """Repository for DynamoDB operations."""

    def __init__(self):
        self.dynamodb = boto3.resource('dynamodb', region_name=config.settings.aws_region)
        self.table = self.dynamodb.Table(config.settings.videos_table_name)

    def create(self, video: Video) -> Video:
        """
        Save a new video record to DynamoDB.

        Args:
            video: Video domain model; video_id is generated when absent

        Returns:
            The saved Video with video_id set

        Raises:
            PersistenceError: If save operation fails
        """
        video_id = video.video_id or str(uuid.uuid4())
        try:
            item = {
                'video_id': video_id,
                'title': video.title,
                'tags': list(video.tags),
                'video_url': video.video_url,
                'publish_status': video.publish_status,
                'uploaded_by': video.uploaded_by,
                'uploaded_by_role': video.uploaded_by_role,
                'upload_date': video.upload_date.isoformat(),
                'view_count': video.view_count
            }

            optional_fields = {
                'video_public_id': video.video_public_id,
                'thumbnail_url': video.thumbnail_url,
                'thumbnail_public_id': video.thumbnail_public_id
            }
            item.update({key: value for key, value in optional_fields.items() if value})

            self.table.put_item(
                Item=item,
                ConditionExpression='attribute_not_exists(video_id)'
            )

        except ClientError as e:
            raise PersistenceError(f"Failed to save video metadata: {str(e)}") from e
        except Exception as e:
            raise PersistenceError(f"Unexpected error saving video metadata: {str(e)}") from e

        video.video_id = video_id
        return video
