"""Models for EC2 identity, volumes and snapshots."""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional

from ebs_rotate.config.settings import DEFAULT_MAX_SNAPSHOT_COUNT

from .types import MachineKind

INSTANCE_ID_PREFIX_LENGTH = 2  # "i-"

@dataclass(frozen=True)
class MachineIdentity:
    """Identity of the host, resolved once per process"""
    kind: MachineKind = MachineKind.UNKNOWN
    instance_id: Optional[str] = None
    machine_id: Optional[str] = None
    region: Optional[str] = None
    availability_zone: Optional[str] = None
    instance_type: Optional[str] = None
    account_id: Optional[str] = None
    image_id: Optional[str] = None
    private_ip: Optional[str] = None

    @property
    def is_ec2(self) -> bool:
        return self.kind == MachineKind.EC2

    @classmethod
    def unknown(cls) -> 'MachineIdentity':
        return cls(kind=MachineKind.UNKNOWN)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'MachineIdentity':
        """Build an EC2 identity from an instance identity document"""
        instance_id = document['instanceId']
        return cls(
            kind=MachineKind.EC2,
            instance_id=instance_id,
            machine_id=instance_id[INSTANCE_ID_PREFIX_LENGTH:],
            region=document.get('region'),
            availability_zone=document.get('availabilityZone'),
            instance_type=document.get('instanceType'),
            account_id=document.get('accountId'),
            image_id=document.get('imageId'),
            private_ip=document.get('privateIp')
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['kind'] = self.kind.value
        return data

@dataclass
class Volume:
    """EBS volume attached to the instance"""
    volume_id: str
    device: Optional[str] = None

@dataclass
class Snapshot:
    """Completed EBS snapshot of a volume"""
    snapshot_id: str
    started_at: datetime
    description: str = ""
    state: str = "completed"

@dataclass
class RetentionPolicy:
    """Number of completed snapshots kept per volume before a new one is started"""
    max_backup_count: int = DEFAULT_MAX_SNAPSHOT_COUNT

    def __post_init__(self):
        if self.max_backup_count <= 0:
            self.max_backup_count = DEFAULT_MAX_SNAPSHOT_COUNT

@dataclass
class RunOptions:
    """Per-invocation switches for a backup run"""
    force: bool = False
    no_prune: bool = False
    dry_run: bool = False

@dataclass
class MetadataResult:
    """Outcome of a metadata service call: a value, or the reason there is none"""
    value: Optional[Any] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def success(cls, value: Any) -> 'MetadataResult':
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> 'MetadataResult':
        return cls(error=error)
