"""AWS client construction."""
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError

from ebs_rotate.config.settings import AwsConfig
from ebs_rotate.errors import ConfigurationError

logger = logging.getLogger(__name__)


def create_ec2_client(aws_config: AwsConfig):
    """Create an EC2 client from explicit credentials.

    SDK retries are turned off: every call is attempted exactly once.

    Raises:
        ConfigurationError: If credentials or region are missing, or the
            client cannot be constructed
    """
    if not all([aws_config.access_key, aws_config.secret_key]):
        raise ConfigurationError("AWS credentials not found in environment variables")
    if not aws_config.region:
        raise ConfigurationError("AWS region not found in environment variables")

    config = Config(
        retries={
            'max_attempts': 1,
            'mode': 'standard'
        }
    )

    try:
        return boto3.client(
            'ec2',
            aws_access_key_id=aws_config.access_key,
            aws_secret_access_key=aws_config.secret_key,
            aws_session_token=aws_config.session_token,
            region_name=aws_config.region,
            endpoint_url=aws_config.endpoint_url,
            config=config
        )
    except (BotoCoreError, ValueError) as e:
        logger.error(f"Error creating EC2 client: {str(e)}")
        raise ConfigurationError(f"Unable to create EC2 client: {str(e)}")
