"""boto3 client factory."""

from __future__ import annotations

import logging
from typing import Any, Optional

import boto3

logger = logging.getLogger(__name__)


def create_boto_client(
    service_name: str,
    region_name: Optional[str] = None,
    profile_name: Optional[str] = None,
    endpoint_url: Optional[str] = None,
) -> Any:
    """Create a boto3 client for a service.

    Region and credentials fall back to the standard AWS resolution chain
    (environment, shared config files, instance metadata) when not given.

    Args:
        service_name: AWS service name (e.g., "ec2")
        region_name: AWS region (optional)
        profile_name: AWS profile name (optional)
        endpoint_url: Custom endpoint URL, e.g. for LocalStack (optional)

    Returns:
        boto3 client
    """
    session = boto3.Session(profile_name=profile_name, region_name=region_name)

    logger.debug(
        f"Creating {service_name} client (region={session.region_name}, "
        f"profile={profile_name or 'default'}, endpoint={endpoint_url or 'default'})"
    )

    return session.client(service_name, endpoint_url=endpoint_url)
