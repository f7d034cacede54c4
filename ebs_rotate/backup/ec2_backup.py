"""Rotate and create EBS snapshots for the volumes of one EC2 instance."""
import json
import logging
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ebs_rotate.cloud.models import RetentionPolicy, RunOptions, Snapshot, Volume
from ebs_rotate.cloud.types import SnapshotState
from ebs_rotate.config.settings import BackupConfig
from ebs_rotate.errors import handle_aws_errors, is_dry_run_error
from ebs_rotate.machine.details import MachineDetails

logger = logging.getLogger(__name__)


def _as_datetime(value) -> datetime:
    """Normalize a snapshot StartTime (datetime or ISO string) to an aware datetime."""
    if isinstance(value, datetime):
        moment = value
    else:
        moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


class Ec2Backup:
    """Prunes old snapshots and starts new ones for every attached volume.

    Pruning for a volume always runs before its new snapshot is requested,
    so the retention count is applied to the snapshots that existed before
    this run and a snapshot started by this run is never pruned by it.
    """

    def __init__(self, ec2_client, machine: MachineDetails,
                 config: Optional[BackupConfig] = None,
                 options: Optional[RunOptions] = None,
                 today: Callable[[], date] = date.today):
        self.ec2_client = ec2_client
        self.machine = machine
        config = config or BackupConfig()
        self.enable = config.enable
        self.retention = RetentionPolicy(config.max_snapshot_count)
        self.extra_tags = dict(config.tags)
        self.options = options or RunOptions(dry_run=config.dry_run)
        self.today = today

    @property
    def max_backup_count(self) -> int:
        return self.retention.max_backup_count

    def create(self) -> None:
        """Run one backup pass over the instance's volumes."""
        if not self.enable and not self.options.force:
            logger.info("EC2 backup is disabled in environment")
            return

        try:
            machine = self.machine.resolve()
        except Exception as e:
            logger.error(f"Error getting machine details: {str(e)}")
            return

        if not machine.is_ec2:
            logger.info(f"Instance type is wrong to do an EC2 backup {json.dumps(machine.to_dict())}")
            return

        volumes = self.get_volumes(machine.instance_id)
        tags = self.get_tags(machine.instance_id)

        if not volumes:
            logger.info(f"No volumes found for {machine.instance_id}, no snapshots started")
            return

        for volume in volumes.values():
            if self.options.no_prune:
                prune_wording = "(pruning disabled)"
            else:
                prune_count = self.prune_backups(volume.volume_id)
                prune_wording = f"and pruned {prune_count} old snapshots"

            name = tags.get('Name') or machine.instance_id
            if len(volumes) > 1:
                name += f" ({volume.device or volume.volume_id})"

            if self.backup(volume.volume_id, name):
                logger.info(f"Successfully started snapshot for {volume.volume_id} {prune_wording}")
            else:
                logger.error(f"Error starting snapshot for {volume.volume_id} {prune_wording}")

    @handle_aws_errors("Error getting volumes", default={})
    def get_volumes(self, instance_id: str) -> Dict[str, Volume]:
        """Volumes attached to the instance, keyed by volume id"""
        paginator = self.ec2_client.get_paginator('describe_volumes')
        pages = paginator.paginate(
            DryRun=False,
            Filters=[{'Name': 'attachment.instance-id', 'Values': [instance_id]}]
        )

        volumes: Dict[str, Volume] = {}
        for page in pages:
            for item in page.get('Volumes', []):
                attachments = item.get('Attachments') or [{}]
                volumes[item['VolumeId']] = Volume(
                    volume_id=item['VolumeId'],
                    device=attachments[0].get('Device')
                )
        return volumes

    @handle_aws_errors("Error getting instance tags", default={})
    def get_tags(self, instance_id: str) -> Dict[str, str]:
        paginator = self.ec2_client.get_paginator('describe_tags')
        pages = paginator.paginate(
            DryRun=False,
            Filters=[{'Name': 'resource-id', 'Values': [instance_id]}]
        )

        tags: Dict[str, str] = {}
        for page in pages:
            for tag in page.get('Tags', []):
                tags[tag['Key']] = tag['Value']
        return tags

    @handle_aws_errors("Error getting current snapshots", default=[])
    def get_backups(self, volume_id: str) -> List[Snapshot]:
        """Completed snapshots of a volume, oldest first"""
        paginator = self.ec2_client.get_paginator('describe_snapshots')
        pages = paginator.paginate(
            DryRun=False,
            Filters=[
                {'Name': 'volume-id', 'Values': [volume_id]},
                {'Name': 'status', 'Values': [SnapshotState.COMPLETED.value]}
            ]
        )

        snapshots: List[Snapshot] = []
        for page in pages:
            for item in page.get('Snapshots', []):
                if item.get('State') != SnapshotState.COMPLETED.value:
                    continue
                snapshots.append(Snapshot(
                    snapshot_id=item['SnapshotId'],
                    started_at=_as_datetime(item['StartTime']),
                    description=item.get('Description', ''),
                    state=item['State']
                ))

        # sorted() is stable: equal start times keep provider order
        return sorted(snapshots, key=lambda snapshot: snapshot.started_at)

    def prune_backups(self, volume_id: str) -> int:
        """Delete the oldest completed snapshots beyond the retention count.

        Returns:
            int: Number of snapshots actually deleted
        """
        backups = self.get_backups(volume_id)
        if len(backups) <= self.max_backup_count:
            return 0

        prune = backups[:len(backups) - self.max_backup_count]

        count = 0
        for snapshot in prune:
            try:
                self.ec2_client.delete_snapshot(
                    SnapshotId=snapshot.snapshot_id,
                    DryRun=self.options.dry_run
                )
            except ClientError as e:
                if not is_dry_run_error(e):
                    logger.error(f"Error pruning snapshot {snapshot.snapshot_id}: {str(e)}")
                    continue
                logger.info(f"Dry run: would delete snapshot {snapshot.snapshot_id}")
            except BotoCoreError as e:
                logger.error(f"Error pruning snapshot {snapshot.snapshot_id}: {str(e)}")
                continue

            count += 1

        return count

    def backup(self, volume_id: Optional[str], name: Optional[str] = None) -> bool:
        """Start a snapshot of a volume.

        Args:
            volume_id: Volume to snapshot
            name: Value of the snapshot's Name tag, defaults to the volume id

        Returns:
            bool: True if the provider accepted the request; the snapshot
            itself completes asynchronously
        """
        if not volume_id:
            logger.error("Volume ID is not set in backup parameters")
            return False

        name = name or volume_id

        tags = [{'Key': 'Name', 'Value': name}]
        for key, value in self.extra_tags.items():
            tags.append({'Key': key, 'Value': value})

        try:
            self.ec2_client.create_snapshot(
                VolumeId=volume_id,
                Description=f"{name} Backup {self.today():%Y-%m-%d}",
                DryRun=self.options.dry_run,
                TagSpecifications=[
                    {
                        'ResourceType': 'snapshot',
                        'Tags': tags
                    }
                ]
            )
        except ClientError as e:
            if is_dry_run_error(e):
                logger.info(f"Dry run: would start snapshot for {volume_id}")
                return True
            logger.error(str(e))
            return False
        except BotoCoreError as e:
            logger.error(str(e))
            return False

        return True
