"""Tenant identifier derivation from the site host name."""

from __future__ import annotations

import logging
import re
from typing import Optional

from site_explorer.core.urls import host_of

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM_DOMAIN = "sharepoint.com"


def extract_tenant_id(
    url: Optional[str],
    platform_domain: str = DEFAULT_PLATFORM_DOMAIN,
) -> Optional[str]:
    """Derive the tenant from a site URL.

    ``https://contoso.sharepoint.com/sites/hr`` yields ``"contoso"``. Hosts
    with at least three labels whose second-to-last label is the platform
    name (``contoso.sharepoint.de``) are accepted too.

    Args:
        url: Absolute site URL.
        platform_domain: Recognized platform suffix.

    Returns:
        The lower-cased tenant, or None if the host does not match.
    """
    host = host_of(url)
    if not host:
        logger.warning("Could not extract tenant ID: no host in %r", url)
        return None

    domain = platform_domain.lower().strip(".")
    match = re.match(rf"^([^.]+)\.{re.escape(domain)}$", host)
    if match:
        return match.group(1).lower()

    platform_name = domain.split(".")[0]
    labels = host.split(".")
    if len(labels) >= 3 and labels[-2] == platform_name:
        return labels[0].lower()

    logger.warning("Could not extract tenant ID from hostname: %s", host)
    return None
