"""Lambda handler simulating a function with a cold start and a fixed working time."""
import asyncio
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from workload.settings import WorkloadSettings, get_settings

logger = logging.getLogger(__name__)

OK_RESPONSE = {"statusCode": 200, "body": "OK"}


class SimulatedWorkloadHandler:
    """
    Serves requests after simulated latency.

    The first call on an instance waits ``cold_start_time_millis`` before the
    regular ``working_time_millis`` wait. Later calls only pay the working
    time. One instance lives per execution environment, so every new
    environment pays the cold start again.
    """

    def __init__(self, settings: Optional[WorkloadSettings] = None):
        settings = settings or get_settings()
        self.working_time_millis = settings.working_time_millis
        self.cold_start_time_millis = settings.cold_start_time_millis
        self.cold_start = True

    async def _initialize(self) -> None:
        """Simulates the initialization phase taking cold_start_time_millis."""
        logger.info(f"Setting cold start time: {self.cold_start_time_millis}")
        logger.info("Init started")
        await _suspend(self.cold_start_time_millis)
        logger.info("Init ended")

    async def handle(self) -> Dict[str, Any]:
        # flag is flipped only after the delay completes
        if self.cold_start:
            await self._initialize()
            self.cold_start = False

        logger.info(f"Setting working time: {self.working_time_millis}")
        logger.info("Execution started")
        await _suspend(self.working_time_millis)
        logger.info("Execution ended")
        return dict(OK_RESPONSE)


async def _suspend(millis: int) -> None:
    if millis > 0:
        await asyncio.sleep(millis / 1000)


@lru_cache()
def get_handler() -> SimulatedWorkloadHandler:
    """Get the handler of this execution environment."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)
    return SimulatedWorkloadHandler(settings)


def lambda_handler(event, context):
    """
    AWS Lambda entry point.

    Args:
        event (dict): API Gateway proxy event, ignored.
        context (LambdaContext): Lambda context, ignored.

    Returns:
        dict: ``{"statusCode": 200, "body": "OK"}``
    """
    return asyncio.run(get_handler().handle())
