#!/usr/bin/env python3
"""
Create and rotate EBS snapshots on AWS for the EC2 instance this runs on.
"""
import argparse
import os
import sys
from typing import List, Optional

from ebs_rotate.backup.ec2_backup import Ec2Backup
from ebs_rotate.cloud.metadata import MetadataClient
from ebs_rotate.cloud.models import RunOptions
from ebs_rotate.cloud.providers import create_ec2_client
from ebs_rotate.config.settings import load_config
from ebs_rotate.errors import ConfigurationError
from ebs_rotate.machine.details import MachineDetails
from ebs_rotate.scripts.common import setup_logging


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments for the backup runner."""
    parser = argparse.ArgumentParser(
        description='Create and rotate EBS snapshots on AWS for EC2 instances.'
    )
    parser.add_argument('-f', '--force', action='store_true',
                        help='Override the ENABLE environment variable')
    parser.add_argument('-p', '--no-prune', action='store_true',
                        help='Prevent the removal of old snapshots')
    parser.add_argument('-n', '--dry-run', action='store_true',
                        help='Ask AWS to validate snapshot changes without making them')
    parser.add_argument('--env-file', default=None,
                        help='Path of the .env file to load')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    # Configuration warnings are logged before the .env file can set LOG_LEVEL
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))

    try:
        config = load_config(env_file=args.env_file)
        setup_logging(config.log_level)
        ec2_client = create_ec2_client(config.aws)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    options = RunOptions(
        force=args.force,
        no_prune=args.no_prune,
        dry_run=args.dry_run or config.backup.dry_run
    )
    machine = MachineDetails(MetadataClient(), machine_type=config.machine.machine_type)

    Ec2Backup(ec2_client, machine, config.backup, options).create()
    return 0


if __name__ == "__main__":
    sys.exit(main())
