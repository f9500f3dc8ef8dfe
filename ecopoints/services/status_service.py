"""Backend reachability check."""

import logging

from ecopoints.core.api_client import ApiClient
from ecopoints.models.service_models import BackendStatus


logger = logging.getLogger(__name__)


async def check_backend_status(client: ApiClient) -> BackendStatus:
    """Probe the unauthenticated user listing; online on any 2xx answer."""
    status = BackendStatus.ONLINE if await client.probe("/auth") else BackendStatus.OFFLINE
    logger.info("Backend status: %s", status)
    return status
