"""AWS credential validation."""

from __future__ import annotations

import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from .client import create_boto_client

logger = logging.getLogger(__name__)


class CredentialValidationError(Exception):
    """Raised when AWS credentials are missing or rejected."""


def validate_credentials(
    profile_name: Optional[str] = None,
    region_name: Optional[str] = None,
    endpoint_url: Optional[str] = None,
) -> dict[str, str]:
    """Validate credentials by calling STS GetCallerIdentity.

    Args:
        profile_name: AWS profile name (optional)
        region_name: AWS region (optional)
        endpoint_url: Custom endpoint URL (optional)

    Returns:
        Identity dictionary with account_id, user_id and arn

    Raises:
        CredentialValidationError: If the identity cannot be resolved
    """
    try:
        client = create_boto_client(
            service_name="sts",
            region_name=region_name,
            profile_name=profile_name,
            endpoint_url=endpoint_url,
        )
        identity = client.get_caller_identity()
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        raise CredentialValidationError(f"AWS rejected credentials: {error_code}") from e
    except BotoCoreError as e:
        raise CredentialValidationError(f"Unable to resolve AWS credentials: {e}") from e

    logger.debug(f"Authenticated as {identity.get('Arn')}")

    return {
        "account_id": identity["Account"],
        "user_id": identity.get("UserId", ""),
        "arn": identity.get("Arn", ""),
    }
