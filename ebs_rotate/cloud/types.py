"""Common types and enums for EC2 resources."""
from enum import Enum

class MachineKind(Enum):
    """Classification of the host the process runs on."""
    EC2 = "ec2"
    UNKNOWN = "unknown"

class SnapshotState(Enum):
    """EBS snapshot lifecycle states."""
    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"
    RECOVERABLE = "recoverable"
    RECOVERING = "recovering"
