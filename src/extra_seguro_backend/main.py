from __future__ import annotations

import json
import logging
from typing import Optional, Union

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from .configuration import Settings, get_settings, load_layout
from .errors import BackendError, ValidationError
from .middleware import BodySizeLimitMiddleware
from .models import ErrorResponse, FormRecord, PdfLayout, UploadResponse
from .upload_pipeline import UploadPipeline
from .utils import sanitize_filename

logger = logging.getLogger(__name__)

MISSING_PDF_MESSAGE = "Falta pdf"
DEFAULT_UPLOAD_NAME = "document.pdf"

router = APIRouter()


def get_pipeline(request: Request) -> UploadPipeline:
    return request.app.state.pipeline


def _describe_validation_error(errors) -> str:
    problems = []
    for error in errors:
        location = ".".join(str(part) for part in error["loc"]) or "body"
        problems.append(f"{location}: {error['msg']}")
    return "Invalid form data: " + "; ".join(problems)


@router.get("/", response_class=PlainTextResponse)
def sanity() -> str:
    return "✅ Backend funcionando"


@router.post("/upload", response_model=UploadResponse, responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def upload_pdf(
    pdf: Union[UploadFile, str, None] = File(None),
    pipeline: UploadPipeline = Depends(get_pipeline),
) -> UploadResponse:
    if not isinstance(pdf, StarletteUploadFile):
        raise ValidationError(MISSING_PDF_MESSAGE)

    content = await pdf.read()
    await pdf.close()
    result = await pipeline.upload_file(content, sanitize_filename(pdf.filename, DEFAULT_UPLOAD_NAME))
    return UploadResponse(webUrl=result.webUrl, name=result.name)


@router.post("/generate-pdf-editable", response_model=UploadResponse, responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def generate_pdf_editable(request: Request, pipeline: UploadPipeline = Depends(get_pipeline)) -> UploadResponse:
    body = await request.body()
    try:
        payload = json.loads(body) if body.strip() else {}
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:  # noqa: BLE001
        raise ValidationError(f"Invalid JSON body: {exc}") from exc

    try:
        record = FormRecord.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_describe_validation_error(exc.errors(include_url=False))) from exc

    result = await pipeline.generate_and_upload(record)
    return UploadResponse(webUrl=result.webUrl, name=result.name)


async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.exception(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _describe_validation_error(exc.errors())
    logger.info(f"{request.method} {request.url.path} rejected: {message}")
    return JSONResponse(status_code=400, content={"error": message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} failed unexpectedly")
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(settings: Optional[Settings] = None, layout: Optional[PdfLayout] = None) -> FastAPI:
    settings = settings or get_settings()
    layout = layout or load_layout(settings.layout_path)

    app = FastAPI(title="Extra Seguro Backend", version="0.1.0")
    app.state.pipeline = UploadPipeline(settings, layout)

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BackendError, backend_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Backend listening on port {settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
