"""EC2 metadata, models and client construction."""
from .types import MachineKind, SnapshotState
from .models import (
    MachineIdentity,
    MetadataResult,
    RetentionPolicy,
    RunOptions,
    Snapshot,
    Volume,
)
from .metadata import MetadataClient
from .providers import create_ec2_client

__all__ = [
    'MachineKind',
    'SnapshotState',
    'MachineIdentity',
    'MetadataResult',
    'RetentionPolicy',
    'RunOptions',
    'Snapshot',
    'Volume',
    'MetadataClient',
    'create_ec2_client',
]
