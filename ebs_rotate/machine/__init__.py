"""Machine self-identification."""
from .details import MachineDetails, looks_like_ec2

__all__ = ['MachineDetails', 'looks_like_ec2']
