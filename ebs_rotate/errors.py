"""Error types and AWS error handling utilities."""

import copy
import logging
from functools import wraps

from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

DRY_RUN_ERROR_CODE = 'DryRunOperation'


class RotatorError(Exception):
    """Base class for snapshot rotator errors."""
    def __init__(self, message, code='InternalError'):
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigurationError(RotatorError):
    """Required configuration is missing or invalid."""
    def __init__(self, message):
        super().__init__(message, "ConfigurationError")


class MetadataError(RotatorError):
    """The instance metadata service returned an unusable response."""
    def __init__(self, message):
        super().__init__(message, "MetadataError")


def error_code(error):
    """Return the AWS error code of a ClientError, or None."""
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code')
    return None


def is_dry_run_error(error) -> bool:
    """True when the provider reports a dry run that would have succeeded."""
    return error_code(error) == DRY_RUN_ERROR_CODE


def handle_aws_errors(message, default=None):
    """Decorator to turn AWS read failures into a logged, empty result.

    Args:
        message (str): Prefix for the logged error line
        default: Value returned (as a fresh copy) when the call fails
    """
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except (ClientError, BotoCoreError) as e:
                logger.error(f"{message}: {str(e)}")
                return copy.copy(default)
        return wrapped
    return decorator
