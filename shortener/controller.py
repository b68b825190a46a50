import logging
import os
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

from shortener.dependencies import get_coordinator
from shortener.helpers import build_short_url, strip_code
from shortener.models import ShortenRequest, ShortenResponse
from shortener.services import (
    LookupFailed,
    ResolutionCoordinator,
    ShortCodeCollision,
    ShortenFailed,
)

logger = logging.getLogger(__name__)
router = APIRouter()

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL")


def request_base_url(request: Request) -> str:
    if PUBLIC_BASE_URL:
        return PUBLIC_BASE_URL
    scheme = request.headers.get("x-forwarded-proto") or "http"
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid JSON request"},
    )


# Routes
@router.get("/health")
def health_check():
    health_status = {"status": "healthy"}
    logger.info("Health Check: OK")
    return JSONResponse(content=health_status, status_code=status.HTTP_200_OK)


@router.post("/shorten", response_model=ShortenResponse)
async def shorten(
    request: Request,
    body: ShortenRequest,
    coordinator: Annotated[ResolutionCoordinator, Depends(get_coordinator)],
):
    try:
        short_code = await coordinator.resolve_or_create(body.long_url)
        return ShortenResponse(
            short_url=build_short_url(request_base_url(request), short_code),
            long_url=body.long_url,
        )

    except ShortCodeCollision as exc:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"error": "Short URL already in use", "detail": str(exc)},
        )

    except ShortenFailed as exc:
        logger.error(f"Error shortening URL: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to generate short URL"},
        )

    except Exception as exc:
        logger.error(f"Error shortening URL: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


@router.get("/{short_code:path}")
async def redirect(
    short_code: str,
    coordinator: Annotated[ResolutionCoordinator, Depends(get_coordinator)],
):
    try:
        long_url = await coordinator.lookup(strip_code(short_code))

    except LookupFailed as exc:
        logger.error(f"Error redirecting URL: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to retrieve original URL"},
        )

    except Exception as exc:
        logger.error(f"Error redirecting URL: {str(exc)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    if long_url is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Short URL not found"},
        )
    return RedirectResponse(url=long_url, status_code=status.HTTP_302_FOUND)
