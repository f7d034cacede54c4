"""Unit tests for EC2 client construction."""
import unittest
from unittest.mock import ANY, patch

from botocore.exceptions import NoRegionError

from ebs_rotate.cloud.providers import create_ec2_client
from ebs_rotate.config.settings import AwsConfig
from ebs_rotate.errors import ConfigurationError


class TestCreateEc2Client(unittest.TestCase):
    """Test cases for create_ec2_client"""

    def setUp(self):
        self.aws_config = AwsConfig(
            access_key='test-key',
            secret_key='test-secret',
            region='us-east-1'
        )

    @patch('ebs_rotate.cloud.providers.boto3.client')
    def test_client_uses_explicit_credentials(self, mock_client):
        """Test the EC2 client is built from the configured credentials"""
        client = create_ec2_client(self.aws_config)

        self.assertIs(client, mock_client.return_value)
        mock_client.assert_called_once_with(
            'ec2',
            aws_access_key_id='test-key',
            aws_secret_access_key='test-secret',
            aws_session_token=None,
            region_name='us-east-1',
            endpoint_url=None,
            config=ANY
        )

    @patch('ebs_rotate.cloud.providers.boto3.client')
    def test_client_disables_sdk_retries(self, mock_client):
        create_ec2_client(self.aws_config)

        config = mock_client.call_args.kwargs['config']
        self.assertEqual(config.retries['max_attempts'], 1)

    def test_real_client_region(self):
        """Test a real boto3 client can be built without network access"""
        client = create_ec2_client(self.aws_config)
        self.assertEqual(client.meta.region_name, 'us-east-1')

    def test_missing_credentials(self):
        with self.assertRaises(ConfigurationError):
            create_ec2_client(AwsConfig(region='us-east-1'))

    def test_missing_region(self):
        with self.assertRaises(ConfigurationError):
            create_ec2_client(AwsConfig(access_key='test-key', secret_key='test-secret'))

    @patch('ebs_rotate.cloud.providers.boto3.client', side_effect=NoRegionError())
    def test_construction_failure_is_configuration_error(self, mock_client):
        with self.assertLogs('ebs_rotate.cloud.providers', level='ERROR'):
            with self.assertRaises(ConfigurationError) as ctx:
                create_ec2_client(self.aws_config)

        self.assertIn("Unable to create EC2 client", ctx.exception.message)
