"""
Code generation API routes.
"""

from fastapi import APIRouter, Depends

from promptcode.models.schemas import (
    ErrorResponse,
    GenerateCodeResponse,
    GenerationRequest,
)
from promptcode.services.codegen_service import CodeGenerationService
from promptcode.services.runtime import get_codegen_service

router = APIRouter(tags=["generate"])


@router.post(
    "/generate-code",
    response_model=GenerateCodeResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    },
    summary="Generate and run code",
    description="Generate source code from a description, store it and execute it remotely"
)
async def generate_code(
    request: GenerationRequest,
    service: CodeGenerationService = Depends(get_codegen_service)
) -> GenerateCodeResponse:
    """
    Generate code for a natural-language request.

    - **query**: What the program should do (1-5000 characters)
    - **language**: One of `python`, `cpp`, `java`, `csharp`

    Pipeline failures propagate as domain errors and are rendered by the
    application's exception handlers.
    """
    result = await service.generate(request)
    return GenerateCodeResponse(data=result)
