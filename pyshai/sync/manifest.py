"""The ``.shairc`` manifest binding a directory to a remote configuration."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import yaml

from ..exceptions import ManifestNotFoundError, ShaiInvalidInputError

logger = logging.getLogger(__name__)

MANIFEST_FILE_NAME = ".shairc"

DEFAULT_INCLUDE = [".claude/**", ".cursor/**"]
DEFAULT_EXCLUDE = ["**/*.local.*", "**/.env"]


@dataclass
class SyncManifest:
    """Local metadata for a synced directory."""

    slug: str
    """Remote configuration identifier (``slug`` or ``owner/slug``)"""

    include: list[str] = field(default_factory=list)
    """Glob patterns selecting files to sync"""

    exclude: list[str] = field(default_factory=list)
    """Glob patterns removed from the selection"""

    def to_dict(self) -> dict[str, Any]:
        return {"slug": self.slug, "include": self.include, "exclude": self.exclude}

    @classmethod
    def from_dict(cls, data: Any) -> "SyncManifest":
        """Create a manifest from parsed YAML.

        Raises:
            ShaiInvalidInputError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ShaiInvalidInputError(
                f"Invalid {MANIFEST_FILE_NAME} file. Expected a mapping."
            )

        slug = data.get("slug")
        if not slug or not isinstance(slug, str):
            raise ShaiInvalidInputError(
                f"Invalid {MANIFEST_FILE_NAME} file. Missing required field: slug"
            )

        patterns = {}
        for key in ("include", "exclude"):
            value = data.get(key) or []
            if not isinstance(value, list) or not all(
                isinstance(p, str) for p in value
            ):
                raise ShaiInvalidInputError(
                    f"Invalid {MANIFEST_FILE_NAME} file. "
                    f"'{key}' must be a list of glob patterns"
                )
            patterns[key] = value

        return cls(slug=slug, include=patterns["include"], exclude=patterns["exclude"])


def manifest_path(base_path: Union[str, Path]) -> Path:
    return Path(base_path) / MANIFEST_FILE_NAME


def manifest_exists(base_path: Union[str, Path]) -> bool:
    return manifest_path(base_path).is_file()


def load_manifest(base_path: Union[str, Path]) -> SyncManifest:
    """Read the manifest of a directory.

    Args:
        base_path: Directory containing the manifest

    Returns:
        Parsed manifest

    Raises:
        ManifestNotFoundError: If there is no manifest
        ShaiInvalidInputError: If the manifest cannot be parsed
    """
    path = manifest_path(base_path)
    if not path.is_file():
        raise ManifestNotFoundError(
            f"No {MANIFEST_FILE_NAME} file found. Run `shai init` to create one."
        )

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ShaiInvalidInputError(f"Invalid {MANIFEST_FILE_NAME} file: {e}") from e

    manifest = SyncManifest.from_dict(data)
    logger.debug(f"Loaded manifest for {manifest.slug} from {path}")
    return manifest


def read_manifest_slug(base_path: Union[str, Path]) -> str:
    """Best-effort slug of an existing manifest, for messages only."""
    try:
        return load_manifest(base_path).slug
    except ShaiInvalidInputError:
        return "unknown"


def save_manifest(manifest: SyncManifest, base_path: Union[str, Path]) -> Path:
    """Write the manifest to a directory.

    Returns:
        Path of the written file
    """
    path = manifest_path(base_path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"# {MANIFEST_FILE_NAME} - Shai configuration\n")
        yaml.safe_dump(manifest.to_dict(), f, default_flow_style=False, sort_keys=False)
    logger.debug(f"Wrote manifest for {manifest.slug} to {path}")
    return path


def remove_manifest(base_path: Union[str, Path]) -> bool:
    """Delete the manifest if present.

    Returns:
        True if a file was removed
    """
    path = manifest_path(base_path)
    if path.is_file():
        path.unlink()
        logger.debug(f"Removed manifest {path}")
        return True
    return False
