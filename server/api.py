"""FastAPI server exposing the upload and outfit generation endpoints."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Form, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import UploadFile

from logic.errors import (
    ExternalServiceError,
    InputValidationError,
    InsufficientItemsError,
    MalformedAIResponseError,
    MissingAssetsError,
)
from logic.validation import ErrorOut, MessageOut, OutfitOut, describe_validation_error, parse_upload_form
from stylist_app.app import WardrobeStylistApp
from stylist_app.logging_config import correlation_context, get_logger, log_event
from tools.image_store import URL_PREFIX

LOGGER = get_logger(__name__)

NO_IMAGE_MESSAGE = "No image uploaded"
UPLOAD_FAILED_MESSAGE = "Upload failed"
STYLIST_FAILED_MESSAGE = "AI stylist failed"

# Errors whose own message is safe to return; everything else gets the route's generic text.
_CLIENT_FACING_ERRORS = (
    InputValidationError,
    InsufficientItemsError,
    MissingAssetsError,
    MalformedAIResponseError,
    ExternalServiceError,
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorOut(error=message).model_dump())


def _failure(exc: Exception, fallback_message: str) -> JSONResponse:
    if isinstance(exc, _CLIENT_FACING_ERRORS):
        return _error(exc.status_code, exc.public_message)
    return _error(500, fallback_message)


def _stylist(request: Request) -> WardrobeStylistApp:
    return request.app.state.stylist


def create_app(stylist: WardrobeStylistApp | None = None) -> FastAPI:
    """Build the ASGI app around a stylist container.

    Tests pass a container with a stubbed model client; production lets the
    container read its configuration from the environment.
    """

    stylist = stylist or WardrobeStylistApp()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        stylist.startup()
        try:
            yield
        finally:
            stylist.shutdown()

    app = FastAPI(title="Wardrobe Stylist", version="0.1.0", lifespan=lifespan)
    app.state.stylist = stylist
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.mount(
        URL_PREFIX,
        StaticFiles(directory=str(stylist.image_store.upload_dir), check_dir=False),
        name="uploads",
    )

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        incoming = request.headers.get("X-Correlation-ID")
        with correlation_context(incoming) as correlation_id:
            response = await call_next(request)
            response.headers["X-Correlation-ID"] = correlation_id
            return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, describe_validation_error(exc))

    @app.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {
            "status": "ok",
            "service": "wardrobe-stylist",
            "environment": stylist.config.environment or "local",
            "model": stylist.config.model,
            "gemini_api_key_loaded": bool(stylist.config.api_key),
        }

    @app.post(
        "/upload",
        status_code=201,
        response_model=MessageOut,
        responses={400: {"model": ErrorOut}, 500: {"model": ErrorOut}},
    )
    async def upload_item(
        request: Request,
        name: Optional[str] = Form(None),
        category: Optional[str] = Form(None),
        color: Optional[str] = Form(None),
        user_id: Optional[str] = Form(None),
    ):
        """Store an uploaded image and catalog it as a clothing item.

        The ``image`` part is read from the raw form: a browser that submits the
        form without a file sends an empty filename or a plain text field, and
        both are answered as a missing image.
        """

        image = (await request.form()).get("image")
        if not isinstance(image, UploadFile) or not image.filename:
            return _error(400, NO_IMAGE_MESSAGE)

        container = _stylist(request)
        try:
            form = parse_upload_form(
                name, category, color, user_id, default_user_id=container.config.default_user_id
            )
            file_bytes = await image.read()
            await container.upload_item(
                user_id=form.user_id,
                name=form.name,
                category=form.category.value,
                color=form.color,
                file_bytes=file_bytes,
                original_filename=image.filename,
            )
        except InputValidationError as exc:
            log_event(LOGGER, logging.WARNING, "upload_rejected", reason=exc.public_message)
            return _error(400, exc.public_message)
        except Exception as exc:
            log_event(LOGGER, logging.ERROR, "upload_failed", error=str(exc), exc_info=True)
            return _failure(exc, UPLOAD_FAILED_MESSAGE)
        finally:
            await image.close()

        return MessageOut(message="Item uploaded successfully")

    async def generate_outfit(user_id: int, request: Request):
        """Ask the model for an outfit built from the user's items."""

        try:
            selection = await _stylist(request).generate_outfit(user_id)
        except (InsufficientItemsError, MissingAssetsError) as exc:
            log_event(LOGGER, logging.WARNING, "generate_rejected", reason=str(exc))
            return _failure(exc, STYLIST_FAILED_MESSAGE)
        except Exception as exc:
            log_event(LOGGER, logging.ERROR, "generate_failed", error=str(exc), exc_info=True)
            return _failure(exc, STYLIST_FAILED_MESSAGE)
        return OutfitOut.model_validate(selection.to_dict())

    outfit_responses = {400: {"model": ErrorOut}, 500: {"model": ErrorOut}}
    app.add_api_route(
        "/generate-ai/{user_id}",
        generate_outfit,
        methods=["GET"],
        response_model=OutfitOut,
        responses=outfit_responses,
    )
    app.add_api_route(
        "/generate/{user_id}",
        generate_outfit,
        methods=["GET"],
        response_model=OutfitOut,
        responses=outfit_responses,
        name="generate_outfit_alias",
    )

    return app


__all__ = ["create_app"]
