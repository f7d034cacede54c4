"""Client for the EC2 instance metadata service (IMDSv2)."""
import json
import logging
import time
from typing import Callable, Optional

import requests

from ebs_rotate.errors import MetadataError

from .models import MetadataResult

logger = logging.getLogger(__name__)

METADATA_URL = "http://169.254.169.254"
TOKEN_PATH = "/latest/api/token"
IDENTITY_DOCUMENT_PATH = "/latest/dynamic/instance-identity/document"
PUBLIC_IPV4_PATH = "/latest/meta-data/public-ipv4"

TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
TOKEN_HEADER = "X-aws-ec2-metadata-token"


class MetadataClient:
    """Token-gated access to the instance metadata service.

    Every call is best effort: transport errors, non-2xx responses and
    malformed documents come back as a failed MetadataResult and are never
    raised to the caller.
    """

    def __init__(self, base_url: str = METADATA_URL, timeout: float = 2.0,
                 token_ttl: int = 60, token_slack: int = 5,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.token_ttl = token_ttl
        self.token_slack = token_slack
        self.session = session or requests.Session()
        self.clock = clock
        self._token: Optional[str] = None
        self._token_issued_at: Optional[float] = None

    def _token_is_fresh(self) -> bool:
        if self._token is None or self._token_issued_at is None:
            return False
        expires_at = self._token_issued_at + self.token_ttl - self.token_slack
        return self.clock() < expires_at

    def get_token(self) -> MetadataResult:
        """Return a cached token, or request a new one when it is about to expire"""
        if self._token_is_fresh():
            return MetadataResult.success(self._token)

        try:
            response = self.session.put(
                f"{self.base_url}{TOKEN_PATH}",
                headers={TOKEN_TTL_HEADER: str(self.token_ttl)},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error fetching metadata token: {str(e)}")
            return MetadataResult.failure(str(e))

        token = response.text.strip()
        if not token:
            logger.error("Error fetching metadata token: empty token returned")
            return MetadataResult.failure("empty token returned")

        self._token = token
        self._token_issued_at = self.clock()
        return MetadataResult.success(token)

    def _get(self, path: str) -> MetadataResult:
        token = self.get_token()
        if not token.ok:
            return token

        try:
            response = self.session.get(
                f"{self.base_url}{path}",
                headers={TOKEN_HEADER: token.value},
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error querying metadata {path}: {str(e)}")
            return MetadataResult.failure(str(e))

        return MetadataResult.success(response.text)

    def get_identity_document(self) -> MetadataResult:
        """Fetch and decode the instance identity document"""
        result = self._get(IDENTITY_DOCUMENT_PATH)
        if not result.ok:
            return result

        try:
            document = self._decode_document(result.value)
        except MetadataError as e:
            logger.error(f"Invalid identity document from {self.base_url}: {e.message}")
            return MetadataResult.failure(e.message)

        return MetadataResult.success(document)

    @staticmethod
    def _decode_document(text: str) -> dict:
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise MetadataError(f"malformed JSON: {str(e)}")
        if not isinstance(document, dict) or not document:
            raise MetadataError("expected a non-empty JSON object")
        return document

    def get_public_ipv4(self) -> MetadataResult:
        result = self._get(PUBLIC_IPV4_PATH)
        if not result.ok:
            return result

        ip = result.value.strip()
        if not ip:
            return MetadataResult.failure("no public IPv4 address assigned")
        return MetadataResult.success(ip)
