import asyncio
import json
import sys

import httpx

from lmate.app.core.config import settings
from lmate.app.services.session import DashboardSession


async def main(serial: str):
    async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as client:
        session = DashboardSession(serial, client=client)
        await session.provisioning_tick()
        await session.metrics_tick()
        print(json.dumps(session.dashboard().model_dump(mode="json", by_alias=True), indent=2))

if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else settings.default_serial))
