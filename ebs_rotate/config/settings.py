"""Configuration loading for the snapshot rotator."""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from ebs_rotate.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_SNAPSHOT_COUNT = 4

TRUE_STRINGS = ('true', 'on', 'yes', 'y', '1')
BOOLEAN_LITERALS = TRUE_STRINGS + ('false', 'off', 'no', 'n', '0', '')

REQUIRED_AWS_KEYS = ('AWS_KEY', 'AWS_SECRET', 'AWS_REGION')


def boolean(value: Any) -> bool:
    """Convert a loosely typed value to a boolean.

    Strings are true only for "true", "on", "yes", "y" and "1" (any case);
    every other string is false. Numbers are true only when equal to 1.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in TRUE_STRINGS
    if isinstance(value, (int, float)):
        return value == 1
    return bool(value)


def parse_tags(raw: Optional[str]) -> Dict[str, str]:
    """Parse the TAGS setting (a JSON object) into a tag map.

    Empty, malformed or non-object input yields no tags. Null values are
    dropped; numbers and booleans keep their JSON spelling.
    """
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring malformed TAGS setting: {str(e)}")
        return {}
    if not isinstance(data, dict):
        return {}
    tags = {}
    for key, value in data.items():
        if value is None:
            continue
        tags[str(key)] = value if isinstance(value, str) else json.dumps(value)
    return tags


def parse_max_snapshot_count(raw: Optional[str]) -> int:
    """Parse MAX_SNAPSHOT_COUNT, falling back to the default for non-positive values."""
    if raw is None or raw == '':
        return DEFAULT_MAX_SNAPSHOT_COUNT
    try:
        count = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"MAX_SNAPSHOT_COUNT must be an integer, got {raw!r}")
    if count <= 0:
        return DEFAULT_MAX_SNAPSHOT_COUNT
    return count


@dataclass
class AwsConfig:
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: Optional[str] = None
    session_token: Optional[str] = None
    endpoint_url: Optional[str] = None


@dataclass
class BackupConfig:
    """Settings consumed by the backup orchestrator."""
    enable: bool = True
    max_snapshot_count: int = DEFAULT_MAX_SNAPSHOT_COUNT
    tags: Dict[str, str] = field(default_factory=dict)
    dry_run: bool = False


@dataclass
class MachineConfig:
    # Overrides host detection when set ("ec2" or anything else)
    machine_type: Optional[str] = None


@dataclass
class AppConfig:
    aws: AwsConfig
    backup: BackupConfig
    machine: MachineConfig
    log_level: str = 'INFO'


def _validate_environment(env: Mapping[str, str], require_aws: bool) -> None:
    # Backup settings are only checked for the runner that uses them
    if not require_aws:
        return

    missing = [key for key in REQUIRED_AWS_KEYS if not env.get(key)]
    if missing:
        raise ConfigurationError(
            f"Required environment variables are missing or empty: {', '.join(missing)}"
        )

    enable = env.get('ENABLE')
    if enable is not None and enable.lower() not in BOOLEAN_LITERALS:
        raise ConfigurationError(f"ENABLE must be a boolean value, got {enable!r}")


def load_config(env_file: Optional[str] = None, require_aws: bool = True,
                environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Load configuration from the environment (and an optional .env file).

    Args:
        env_file: Explicit .env path; the default search is used when omitted
        require_aws: Whether AWS credentials and region must be present and
            the backup settings must be well formed
        environ: Mapping to read instead of os.environ (no .env loading)

    Raises:
        ConfigurationError: If a required value is missing or malformed
    """
    if environ is None:
        if env_file:
            load_dotenv(dotenv_path=env_file)
        else:
            load_dotenv()
        environ = os.environ

    _validate_environment(environ, require_aws)

    aws_config = AwsConfig(
        access_key=environ.get('AWS_KEY') or None,
        secret_key=environ.get('AWS_SECRET') or None,
        region=environ.get('AWS_REGION') or None,
        session_token=environ.get('AWS_SESSION_TOKEN') or None,
        endpoint_url=environ.get('AWS_ENDPOINT_URL') or None
    )

    try:
        max_snapshot_count = parse_max_snapshot_count(environ.get('MAX_SNAPSHOT_COUNT'))
    except ConfigurationError:
        if require_aws:
            raise
        max_snapshot_count = DEFAULT_MAX_SNAPSHOT_COUNT

    backup_config = BackupConfig(
        enable=boolean(environ.get('ENABLE', True)),
        max_snapshot_count=max_snapshot_count,
        tags=parse_tags(environ.get('TAGS', '[]')),
        dry_run=boolean(environ.get('DRY_RUN', False))
    )

    machine_config = MachineConfig(
        machine_type=environ.get('MACHINE_TYPE') or None
    )

    return AppConfig(
        aws=aws_config,
        backup=backup_config,
        machine=machine_config,
        log_level=environ.get('LOG_LEVEL', 'INFO').upper()
    )
