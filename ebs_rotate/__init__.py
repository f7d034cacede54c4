"""Rotate EBS snapshots for the EC2 instance a job runs on."""

__version__ = "0.1.0"
__author__ = "ebs-rotate contributors"
