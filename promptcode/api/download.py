"""
Download API routes.
"""

from fastapi import APIRouter, Depends, Response

from promptcode.languages import content_type_for
from promptcode.models.schemas import ErrorResponse
from promptcode.services.runtime import get_store
from promptcode.storage.store import TempFileStore

router = APIRouter(tags=["download"])


@router.get(
    "/download/{file_name}",
    response_class=Response,
    responses={
        200: {"description": "Stored source file", "content": {"text/plain": {}}},
        404: {"model": ErrorResponse}
    },
    summary="Download a generated file"
)
async def download_file(
    file_name: str,
    store: TempFileStore = Depends(get_store)
) -> Response:
    """Serve a previously generated file as an attachment."""
    content = await store.get(file_name)
    return Response(
        content=content,
        media_type=content_type_for(file_name),
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
