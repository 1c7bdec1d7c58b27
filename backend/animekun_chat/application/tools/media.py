"""Image ingestion tools: cover images and screenshots.

An image comes from exactly one source: a URL the backend downloads itself,
an inline base64 payload, or the image attached to the current chat turn.
Inline and attached images are sent as a multipart upload.
"""

import base64
import binascii
import logging
import mimetypes
from typing import Any

import httpx

from animekun_chat.application.tools import schemas
from animekun_chat.application.tools.registry import ToolContext, ToolRegistry
from animekun_chat.application.tools.resources import RESOURCES
from animekun_chat.domain.entities import ToolResult
from animekun_chat.domain.exceptions import BackendAPIError

logger = logging.getLogger(__name__)

UPLOAD_FROM_URL = "/api/media/upload-from-url"
UPLOAD = "/api/media/upload"


def _inline_image(params: schemas.ImageSourceParams, ctx: ToolContext) -> tuple[str, bytes, str]:
    """Resolve a base64 or attached image to ``(filename, content, mime type)``.

    Raises:
        ValueError: No attachment, or the payload is not valid base64.
    """
    if params.useAttachedImage:
        if ctx.attachment is None:
            raise ValueError("No image is attached to the current message")
        return ctx.attachment.name, ctx.attachment.decode(), ctx.attachment.type

    payload = params.imageBase64 or ""
    if payload.startswith("data:") and "," in payload:
        header, payload = payload.split(",", 1)
        mime_type = params.mimeType or header[5:].split(";", 1)[0]
    else:
        mime_type = params.mimeType or "image/jpeg"
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("imageBase64 is not valid base64") from exc
    filename = params.filename or f"upload{mimetypes.guess_extension(mime_type) or '.jpg'}"
    return filename, content, mime_type


async def _upload(
    params: schemas.ImageSourceParams,
    ctx: ToolContext,
    *,
    entity_type: str,
    related_id: int,
    screenshot: bool,
) -> dict[str, Any]:
    if params.imageUrl is not None:
        return await ctx.backend.request(
            "POST",
            UPLOAD_FROM_URL,
            body={
                "imageUrl": str(params.imageUrl),
                "type": entity_type,
                "relatedId": related_id,
                "saveAsScreenshot": screenshot,
            },
        )

    filename, content, mime_type = _inline_image(params, ctx)
    return await ctx.backend.upload_file(
        UPLOAD,
        filename=filename,
        content=content,
        content_type=mime_type,
        fields={
            "type": entity_type,
            "relatedId": str(related_id),
            "saveAsScreenshot": "true" if screenshot else "false",
        },
    )


def register_media_tools(registry: ToolRegistry) -> None:

    @registry.tool(
        "uploadCoverImage",
        (
            "Upload a cover image for an anime, manga or business and set it as the "
            "record's image.\n\n"
            "Give exactly one source:\n"
            "- imageUrl: the backend downloads the image\n"
            "- useAttachedImage=true: the image the admin attached to this message\n"
            "- imageBase64 (+ filename, mimeType): an inline payload\n\n"
            "If the upload works but setting the image fails, retry with setCoverImage "
            "and the returned filename instead of uploading again."
        ),
        schemas.UploadCoverImageParams,
    )
    async def upload_cover_image(params: schemas.UploadCoverImageParams, ctx: ToolContext) -> ToolResult:
        spec = RESOURCES[params.entityType]
        try:
            uploaded = await _upload(
                params, ctx, entity_type=spec.key, related_id=params.entityId, screenshot=False
            )
        except ValueError as exc:
            return ToolResult.fail(str(exc))

        filename = uploaded.get("filename") if isinstance(uploaded, dict) else None
        if not filename:
            return ToolResult.fail("Upload succeeded but no filename returned", data=uploaded)
        url = uploaded.get("url")

        try:
            await ctx.backend.request("PUT", spec.item_path(params.entityId), body={"image": filename})
        except (BackendAPIError, httpx.HTTPError) as exc:
            logger.warning(
                "Cover uploaded as %s but attaching to %s id=%s failed: %s",
                filename, spec.key, params.entityId, exc,
            )
            return ToolResult.fail(
                str(exc),
                data={"filename": filename, "url": url, "uploaded": True, "attached": False},
                message=(
                    f"The image was uploaded as {filename} but could not be set on "
                    f"{spec.key} ID {params.entityId}. Retry with setCoverImage using this filename."
                ),
            )

        return ToolResult.ok(
            {
                "entityType": spec.key,
                "entityId": params.entityId,
                "filename": filename,
                "url": url,
                "uploaded": True,
                "attached": True,
            },
            f"Cover image uploaded and set for {spec.key} ID {params.entityId}",
        )

    @registry.tool(
        "setCoverImage",
        "Set an already uploaded image (by filename) as the cover of an anime, manga or business.",
        schemas.SetCoverImageParams,
    )
    async def set_cover_image(params: schemas.SetCoverImageParams, ctx: ToolContext) -> ToolResult:
        spec = RESOURCES[params.entityType]
        result = await ctx.backend.request(
            "PUT", spec.item_path(params.entityId), body={"image": params.filename}
        )
        return ToolResult.ok(result, f"Cover image {params.filename} set for {spec.key} ID {params.entityId}")

    @registry.tool(
        "uploadScreenshot",
        (
            "Upload a screenshot (a scene from the anime) for an anime. Screenshots are "
            "stored separately from cover images.\n"
            "Give exactly one source: imageUrl, useAttachedImage=true, or imageBase64."
        ),
        schemas.UploadScreenshotParams,
    )
    async def upload_screenshot(params: schemas.UploadScreenshotParams, ctx: ToolContext) -> ToolResult:
        try:
            uploaded = await _upload(
                params, ctx, entity_type="anime", related_id=params.animeId, screenshot=True
            )
        except ValueError as exc:
            return ToolResult.fail(str(exc))
        uploaded = uploaded if isinstance(uploaded, dict) else {}
        return ToolResult.ok(
            {
                "screenshotId": uploaded.get("id"),
                "animeId": params.animeId,
                "filename": uploaded.get("filename"),
                "url": uploaded.get("url"),
            },
            f"Screenshot uploaded for anime ID {params.animeId}",
        )
