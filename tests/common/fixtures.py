"""Common test fixtures and fake AWS responses for the snapshot rotator."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from unittest.mock import MagicMock, Mock

import pytest
from botocore.exceptions import ClientError

from ebs_rotate.cloud.models import MachineIdentity
from ebs_rotate.machine.details import MachineDetails

INSTANCE_ID = "i-0a1b2c3d4e5f60718"

IDENTITY_DOCUMENT = {
    "privateIp": "172.31.59.103",
    "availabilityZone": "us-east-1b",
    "version": "2017-09-30",
    "instanceId": INSTANCE_ID,
    "instanceType": "t3.micro",
    "accountId": "123456789012",
    "architecture": "x86_64",
    "imageId": "ami-0abcdef1234567890",
    "pendingTime": "2024-05-12T15:21:57Z",
    "region": "us-east-1"
}

BASE_TIME = datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)


def client_error(code: str, message: str = "failure", operation: str = "Operation") -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


def make_snapshot_item(snapshot_id: str, day: int = 0, state: str = "completed",
                       volume_id: str = "vol-1", description: str = "") -> Dict:
    """A describe_snapshots item started `day` days after BASE_TIME."""
    return {
        'SnapshotId': snapshot_id,
        'VolumeId': volume_id,
        'StartTime': BASE_TIME + timedelta(days=day),
        'State': state,
        'Description': description or f"{snapshot_id} description"
    }


def make_volume_item(volume_id: str, device: str, instance_id: str = INSTANCE_ID) -> Dict:
    return {
        'VolumeId': volume_id,
        'Attachments': [{
            'Device': device,
            'InstanceId': instance_id,
            'State': 'attached',
            'VolumeId': volume_id
        }]
    }


def _filter_value(kwargs: Dict, name: str) -> Optional[str]:
    for entry in kwargs.get('Filters', []):
        if entry['Name'] == name:
            return entry['Values'][0]
    return None


def create_mock_ec2_client(volumes: Optional[List[Dict]] = None,
                           tags: Optional[Dict[str, str]] = None,
                           snapshots: Optional[Dict[str, List[Dict]]] = None):
    """Create a mock EC2 client backed by in-memory volumes, tags and snapshots.

    describe_snapshots returns every snapshot of the volume regardless of the
    status filter, so callers must still discard non-completed entries.
    delete_snapshot removes the snapshot; create_snapshot records a pending one.
    """
    volumes = list(volumes or [])
    tags = dict(tags or {})
    snapshots = snapshots if snapshots is not None else {}
    client = MagicMock()
    client.snapshots = snapshots

    def pages_for(operation, kwargs):
        if operation == 'describe_volumes':
            return [{'Volumes': list(volumes)}]
        if operation == 'describe_tags':
            resource_id = _filter_value(kwargs, 'resource-id')
            return [{'Tags': [
                {'Key': key, 'Value': value, 'ResourceId': resource_id, 'ResourceType': 'instance'}
                for key, value in tags.items()
            ]}]
        if operation == 'describe_snapshots':
            volume_id = _filter_value(kwargs, 'volume-id')
            return [{'Snapshots': list(snapshots.get(volume_id, []))}]
        raise AssertionError(f"Unexpected paginator {operation}")

    paginators = {}

    def get_paginator(operation):
        if operation not in paginators:
            paginator = MagicMock()
            paginator.paginate.side_effect = lambda **kwargs: pages_for(operation, kwargs)
            paginators[operation] = paginator
        return paginators[operation]

    def delete_snapshot(SnapshotId, DryRun=False):
        if not DryRun:
            for items in snapshots.values():
                items[:] = [item for item in items if item['SnapshotId'] != SnapshotId]
        return {}

    def create_snapshot(VolumeId, Description, DryRun=False, TagSpecifications=None):
        snapshot_id = f"snap-new-{len(snapshots.get(VolumeId, [])) + 1}"
        if not DryRun:
            snapshots.setdefault(VolumeId, []).append({
                'SnapshotId': snapshot_id,
                'VolumeId': VolumeId,
                'StartTime': datetime.now(timezone.utc),
                'State': 'pending',
                'Description': Description
            })
        return {'SnapshotId': snapshot_id, 'State': 'pending', 'VolumeId': VolumeId}

    client.get_paginator.side_effect = get_paginator
    client.delete_snapshot.side_effect = delete_snapshot
    client.create_snapshot.side_effect = create_snapshot
    return client


def create_mock_machine(identity: Optional[MachineIdentity] = None):
    """Create a MachineDetails mock resolving to the given identity."""
    machine = Mock(spec=MachineDetails)
    machine.resolve.return_value = identity or MachineIdentity.from_document(IDENTITY_DOCUMENT)
    return machine


@pytest.fixture
def ec2_identity():
    """Identity of a resolved EC2 instance."""
    return MachineIdentity.from_document(IDENTITY_DOCUMENT)


@pytest.fixture
def mock_machine(ec2_identity):
    return create_mock_machine(ec2_identity)


@pytest.fixture
def metadata_session():
    """A requests.Session mock answering token and identity requests."""
    session = MagicMock()
    session.put.return_value = Mock(text="test-token", raise_for_status=Mock())
    return session
