"""Machine self-identification.

A MachineDetails object is built once per process and handed to whatever
needs to know which instance it is running on. The first call to
``resolve()`` classifies the host and, on EC2, reads the instance identity
document; later calls return the cached identity.
"""
import logging
import platform
import re
import threading
from typing import Any, Callable, Dict, Optional

from ebs_rotate.cloud.metadata import MetadataClient
from ebs_rotate.cloud.models import MachineIdentity
from ebs_rotate.cloud.types import MachineKind

logger = logging.getLogger(__name__)

# Private DNS names assigned by EC2: ip-10-0-1-23 / ip-10-0-1-23.ec2.internal
PRIVATE_HOSTNAME_PATTERN = re.compile(r'\bip-\d{1,3}-\d{1,3}-\d{1,3}-\d{1,3}\b')
VENDOR_MARKER_PATTERN = re.compile(
    r'(\.ec2\.internal\b|\.compute\.internal\b|-aws\b|\bamzn)',
    re.IGNORECASE
)


def host_identification() -> str:
    """Node name and kernel release of the running host."""
    uname = platform.uname()
    return f"{uname.node} {uname.release}"


def looks_like_ec2(host_string: Optional[str]) -> bool:
    """Whether a host identification string carries EC2's fingerprints.

    Both a private-IP derived hostname and a vendor marker must be present.
    """
    if not host_string:
        return False
    return bool(PRIVATE_HOSTNAME_PATTERN.search(host_string)
                and VENDOR_MARKER_PATTERN.search(host_string))


class MachineDetails:
    """Resolves and caches the identity of the current host."""

    def __init__(self, metadata_client: Optional[MetadataClient] = None,
                 machine_type: Optional[str] = None,
                 host_probe: Callable[[], str] = host_identification):
        """
        Args:
            metadata_client: Client for the instance metadata service
            machine_type: Forces the classification ("ec2" or anything else)
                instead of inspecting the host
            host_probe: Returns the host identification string
        """
        self.metadata_client = metadata_client or MetadataClient()
        self.machine_type = machine_type.strip().lower() if machine_type else None
        self.host_probe = host_probe
        self._identity: Optional[MachineIdentity] = None
        self._public_ip: Optional[str] = None
        self._lock = threading.Lock()

    def resolve(self) -> MachineIdentity:
        """Return the machine identity, detecting it on first use."""
        with self._lock:
            if self._identity is None:
                self._identity = self._detect()
            return self._identity

    def _determine_machine_kind(self) -> MachineKind:
        if self.machine_type:
            return MachineKind.EC2 if self.machine_type == MachineKind.EC2.value else MachineKind.UNKNOWN

        try:
            host_string = self.host_probe()
        except OSError as e:
            logger.error(f"Error reading host identification: {str(e)}")
            return MachineKind.UNKNOWN

        return MachineKind.EC2 if looks_like_ec2(host_string) else MachineKind.UNKNOWN

    def _detect(self) -> MachineIdentity:
        if self._determine_machine_kind() != MachineKind.EC2:
            return MachineIdentity.unknown()

        result = self.metadata_client.get_identity_document()
        if not result.ok:
            logger.error(
                f"Invalid machine details from {self.metadata_client.base_url}, "
                f"assuming this is not an EC2 instance: {result.error}"
            )
            return MachineIdentity.unknown()

        document = result.value
        instance_id = document.get('instanceId')
        if not isinstance(instance_id, str) or not instance_id:
            logger.error(
                f"Identity document has no usable instanceId ({instance_id!r}), "
                f"assuming this is not an EC2 instance"
            )
            return MachineIdentity.unknown()

        return MachineIdentity.from_document(document)

    def instance_id(self) -> Optional[str]:
        return self.resolve().instance_id

    def machine_id(self) -> Optional[str]:
        return self.resolve().machine_id

    def region(self) -> Optional[str]:
        return self.resolve().region

    def private_ip(self) -> Optional[str]:
        return self.resolve().private_ip

    def public_ip(self) -> Optional[str]:
        """Public IPv4 address of the instance, fetched on first use.

        Returns None off EC2 or when the address cannot be determined.
        """
        identity = self.resolve()
        with self._lock:
            if self._public_ip is not None:
                return self._public_ip
            if not identity.is_ec2:
                return None

            result = self.metadata_client.get_public_ipv4()
            if not result.ok:
                logger.error(f"Error getting public IP: {result.error}")
                return None

            self._public_ip = result.value
            return self._public_ip

    def full_machine_id(self) -> str:
        """Machine type, region and machine id joined with dashes, skipping blanks and repeats"""
        identity = self.resolve()
        parts = []
        for part in (self.machine_type, identity.region, identity.machine_id):
            if part and part not in parts:
                parts.append(part)
        return '-'.join(parts)

    def as_dict(self, include_public_ip: bool = True) -> Dict[str, Any]:
        """Identity as a plain dictionary for diagnostics"""
        data = self.resolve().to_dict()
        data['public_ip'] = self.public_ip() if include_public_ip else self._public_ip
        return data
