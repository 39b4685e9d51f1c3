"""
Architecture export and import.

The export is a single indented JSON document with the same camelCase
field names the API uses. Importing it back yields an equal Architecture.
"""
import json
import re

from pydantic import ValidationError

from flowstudio.models.schemas.architecture import Architecture
from flowstudio.utils.logging import get_logger

logger = get_logger(__name__)


class ArchitectureImportError(ValueError):
    """Raised when an exported payload cannot be turned back into an Architecture"""
    pass


def export_architecture(architecture: Architecture) -> str:
    payload = json.dumps(architecture.to_json_dict(), indent=2, ensure_ascii=False)

    logger.info(
        "export.architecture.completed",
        extra={
            "architecture_id": architecture.id,
            "screens": len(architecture.screens),
            "bytes": len(payload)
        }
    )
    return payload


def import_architecture(text: str) -> Architecture:
    """Decode and validate an exported architecture"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(
            "export.import.decode_failed",
            extra={"error": str(e)}
        )
        raise ArchitectureImportError(f"Export payload is not valid JSON: {e}") from e

    try:
        return Architecture.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "export.import.invalid",
            extra={"errors": e.error_count()}
        )
        raise ArchitectureImportError(f"Export payload is not a valid architecture: {e}") from e


def export_filename(architecture: Architecture) -> str:
    """``Todo App`` -> ``todo-app-architecture.json``"""
    slug = re.sub(r"\s+", "-", architecture.name.strip().lower())
    slug = re.sub(r"[^a-z0-9_-]", "", slug) or "app"
    return f"{slug}-architecture.json"


__all__ = [
    'ArchitectureImportError',
    'export_architecture',
    'import_architecture',
    'export_filename',
]
