"""
Model Response Parsing Utilities

Generative models often wrap JSON answers in markdown code fences or surround
them with prose. These helpers turn such a reply into a typed pydantic model,
or raise MalformedResponse so the caller can take an explicit fallback path.
"""

import re
import logging
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from utils.errors import MalformedResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json)?")
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_RE = re.compile(r"\*(.*?)\*")
_UNDERSCORE_RE = re.compile(r"_(.*?)_")
_FENCED_BLOCK_RE = re.compile(r"```[\s\S]*?```")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers, keeping their content."""
    return _FENCE_RE.sub("", text)


def extract_json_object(text: str) -> str:
    """
    Return the outermost ``{...}`` span of a model reply.

    Raises:
        MalformedResponse: If the reply contains no JSON object
    """
    cleaned = strip_code_fences(text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end < start:
        raise MalformedResponse("Model response contained no JSON object")
    return cleaned[start:end + 1]


def decode_model(text: str, model_cls: Type[ModelT]) -> ModelT:
    """
    Strictly decode a model reply into model_cls.

    Args:
        text: Raw model reply, possibly fenced or wrapped in prose
        model_cls: Pydantic model describing the expected JSON object

    Returns:
        A validated instance of model_cls

    Raises:
        MalformedResponse: If no JSON object is present or it fails validation
    """
    payload = extract_json_object(text)
    try:
        return model_cls.model_validate_json(payload)
    except ValidationError as e:
        logger.warning(
            f"Model response failed validation: model={model_cls.__name__}, "
            f"errors={e.error_count()}"
        )
        raise MalformedResponse(
            f"Model response did not match {model_cls.__name__}"
        ) from e


def strip_markdown(text: str, drop_code_blocks: bool = False) -> str:
    """Remove emphasis markers and collapse runs of blank lines."""
    if drop_code_blocks:
        text = _FENCED_BLOCK_RE.sub("", text)
    text = _BOLD_RE.sub(r"\1", text)
    text = _ITALIC_RE.sub(r"\1", text)
    text = _UNDERSCORE_RE.sub(r"\1", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()
