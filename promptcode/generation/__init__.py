"""Code generation via a hosted language model."""

from .generator import CodeGenerator
from .prompt import build_prompt, strip_code_fences

__all__ = ["CodeGenerator", "build_prompt", "strip_code_fences"]
