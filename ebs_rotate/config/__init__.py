"""Configuration package for the snapshot rotator."""
from .settings import (
    AppConfig,
    AwsConfig,
    BackupConfig,
    MachineConfig,
    boolean,
    load_config,
    parse_tags,
)

__all__ = [
    'AppConfig',
    'AwsConfig',
    'BackupConfig',
    'MachineConfig',
    'boolean',
    'load_config',
    'parse_tags',
]
