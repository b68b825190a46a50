from typing import AsyncGenerator

from fastapi import Request

from shortener.services import ResolutionCoordinator


async def get_coordinator(
    request: Request,
) -> AsyncGenerator[ResolutionCoordinator, None]:
    yield request.app.state.coordinator
