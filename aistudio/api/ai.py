"""API эндпоинты генерации.

Все эндпоинты:
- принимают ID пользователя из заголовка X-User-Id
- передают запрос ядру генераций (GenerationMediator)
- отвечают в едином формате {success, content} или {success, message}

Эндпоинты:
- POST /api/ai/generate-article — статья (JSON: prompt, length)
- POST /api/ai/generate-blog-title — заголовки для блога (JSON: prompt)
- POST /api/ai/generate-image — изображение (JSON: prompt, publish)
- POST /api/ai/remove-image-background — удаление фона (multipart: image)
- POST /api/ai/remove-image-object — удаление объекта (multipart: image, object)
- POST /api/ai/resume-review — ревью резюме (multipart: resume)

Коды ответа по исходу:
    completed 200, rejected_quota 200, invalid 400,
    rejected_plan 403, failed 500, cancelled 499
"""

from collections.abc import Callable
from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from aistudio.api.dependencies import get_mediator, get_snapshot
from aistudio.config.yaml_config import yaml_config
from aistudio.providers.ai.requests import (
    ArticleRequest,
    BackgroundRemovalRequest,
    BlogTitleRequest,
    DocumentReviewRequest,
    GenerationRequest,
    ImageSynthesisRequest,
    ObjectRemovalRequest,
)
from aistudio.services.entitlement_service import EntitlementSnapshot
from aistudio.services.generation import GenerationMediator, GenerationOutcome, OutcomeKind
from aistudio.utils.staging import StagedFile, stage_upload

# Роутер для генераций
router = APIRouter(prefix="/api/ai", tags=["ai"])

THandler = TypeVar("THandler", bound=Callable[..., Any])

# Статус 499 (Client Closed Request): ответ клиенту уже не доставляется
STATUS_CLIENT_CLOSED_REQUEST = 499

OUTCOME_STATUS_CODES: dict[OutcomeKind, int] = {
    OutcomeKind.COMPLETED: 200,
    OutcomeKind.REJECTED_QUOTA: 200,
    OutcomeKind.INVALID: 400,
    OutcomeKind.REJECTED_PLAN: 403,
    OutcomeKind.FAILED: 500,
    OutcomeKind.CANCELLED: STATUS_CLIENT_CLOSED_REQUEST,
}


def typed_post(*args: Any, **kwargs: Any) -> Callable[[THandler], THandler]:
    """Типизированный wrapper для router.post."""
    return router.post(*args, **kwargs)


class GenerationResponse(BaseModel):
    """Ответ эндпоинта генерации.

    Attributes:
        success: True если генерация выполнена.
        content: Текст или URL изображения (при успехе).
        message: Причина отказа или ошибки (при неуспехе).
    """

    success: bool
    content: str | None = None
    message: str | None = None


class ArticleBody(BaseModel):
    """Тело запроса статьи."""

    prompt: str | None = None
    length: int | None = None


class PromptBody(BaseModel):
    """Тело запроса с одним промптом."""

    prompt: str | None = None


class ImageBody(BaseModel):
    """Тело запроса генерации изображения."""

    prompt: str | None = None
    publish: bool = False


def to_response(outcome: GenerationOutcome) -> JSONResponse:
    """Преобразовать исход ядра в HTTP-ответ."""
    body = GenerationResponse(**outcome.to_payload())
    return JSONResponse(
        status_code=OUTCOME_STATUS_CODES[outcome.kind],
        content=body.model_dump(exclude_none=True),
    )


async def _run(
    mediator: GenerationMediator,
    generation_request: GenerationRequest,
    snapshot: EntitlementSnapshot,
    request: Request,
) -> JSONResponse:
    outcome = await mediator.execute(
        generation_request,
        snapshot,
        is_cancelled=request.is_disconnected,
    )
    return to_response(outcome)


async def _stage(
    upload: UploadFile | None, *, max_bytes: int | None = None
) -> StagedFile | None:
    if upload is None:
        return None
    return await stage_upload(upload, max_bytes=max_bytes)


@typed_post("/generate-article", response_model=GenerationResponse)
async def generate_article(
    body: ArticleBody,
    request: Request,
    snapshot: Annotated[EntitlementSnapshot, Depends(get_snapshot)],
    mediator: Annotated[GenerationMediator, Depends(get_mediator)],
) -> JSONResponse:
    """Сгенерировать статью.

    length — желаемая длина статьи, передаётся модели как бюджет токенов.
    """
    generation_request = ArticleRequest(
        prompt=body.prompt or "",
        length=body.length if body.length is not None else 0,
    )
    return await _run(mediator, generation_request, snapshot, request)


@typed_post("/generate-blog-title", response_model=GenerationResponse)
async def generate_blog_title(
    body: PromptBody,
    request: Request,
    snapshot: Annotated[EntitlementSnapshot, Depends(get_snapshot)],
    mediator: Annotated[GenerationMediator, Depends(get_mediator)],
) -> JSONResponse:
    """Сгенерировать заголовки для блога."""
    generation_request = BlogTitleRequest(prompt=body.prompt or "")
    return await _run(mediator, generation_request, snapshot, request)


@typed_post("/generate-image", response_model=GenerationResponse)
async def generate_image(
    body: ImageBody,
    request: Request,
    snapshot: Annotated[EntitlementSnapshot, Depends(get_snapshot)],
    mediator: Annotated[GenerationMediator, Depends(get_mediator)],
) -> JSONResponse:
    """Сгенерировать изображение по описанию (только premium)."""
    generation_request = ImageSynthesisRequest(
        prompt=body.prompt or "",
        publish=body.publish,
    )
    return await _run(mediator, generation_request, snapshot, request)


@typed_post("/remove-image-background", response_model=GenerationResponse)
async def remove_image_background(
    request: Request,
    snapshot: Annotated[EntitlementSnapshot, Depends(get_snapshot)],
    mediator: Annotated[GenerationMediator, Depends(get_mediator)],
    image: Annotated[UploadFile | None, File()] = None,
) -> JSONResponse:
    """Удалить фон с изображения (только premium)."""
    generation_request = BackgroundRemovalRequest(image=await _stage(image))
    return await _run(mediator, generation_request, snapshot, request)


@typed_post("/remove-image-object", response_model=GenerationResponse)
async def remove_image_object(
    request: Request,
    snapshot: Annotated[EntitlementSnapshot, Depends(get_snapshot)],
    mediator: Annotated[GenerationMediator, Depends(get_mediator)],
    image: Annotated[UploadFile | None, File()] = None,
    object_name: Annotated[str | None, Form(alias="object")] = None,
) -> JSONResponse:
    """Удалить объект с изображения (только premium).

    object — название объекта, ровно одно слово.
    """
    generation_request = ObjectRemovalRequest(
        image=await _stage(image),
        object_name=object_name or "",
    )
    return await _run(mediator, generation_request, snapshot, request)


@typed_post("/resume-review", response_model=GenerationResponse)
async def resume_review(
    request: Request,
    snapshot: Annotated[EntitlementSnapshot, Depends(get_snapshot)],
    mediator: Annotated[GenerationMediator, Depends(get_mediator)],
    resume: Annotated[UploadFile | None, File()] = None,
) -> JSONResponse:
    """Ревью резюме в PDF (только premium)."""
    staged = await _stage(resume, max_bytes=yaml_config.limits.max_document_bytes)
    generation_request = DocumentReviewRequest(document=staged)
    return await _run(mediator, generation_request, snapshot, request)
