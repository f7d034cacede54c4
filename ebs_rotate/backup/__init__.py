"""Snapshot backup orchestration."""
from .ec2_backup import Ec2Backup

__all__ = ['Ec2Backup']
