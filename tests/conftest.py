"""Global test configuration and fixtures."""
import logging
import os

from tests.common.fixtures import ec2_identity, metadata_session, mock_machine  # noqa: F401

# botocore must never reach a real metadata service from tests
os.environ.setdefault('AWS_EC2_METADATA_DISABLED', 'true')

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "scenario: end-to-end backup run against a mocked EC2 API")
