import secrets

import structlog

from clipbridge.core.core import Service
from clipbridge.errors import ResourceExhaustedError

logger = structlog.get_logger(__name__)

CODE_MIN = 100000
CODE_SPAN = 900000  # 100000..999999


def generate_device_code() -> str:
    return str(CODE_MIN + secrets.randbelow(CODE_SPAN))


class CodeAllocatorService(Service):
    """Hands out 6-digit codes that are free in the session store."""

    async def allocate(self) -> str:
        attempts = self.core.config.code_allocation_attempts
        for attempt in range(1, attempts + 1):
            code = generate_device_code()
            if not await self.store.exists(code):
                if attempt > 1:
                    logger.debug("device_code_collisions", attempts=attempt)
                return code
        logger.error("device_code_space_exhausted", attempts=attempts)
        raise ResourceExhaustedError(f"No free device code after {attempts} attempts")
