"""
Load the package registry from its declarative source file.

The document maps each package name to the GitHub repository hosting its
release assets:

    {
        "my-package": {"owner": "my-org", "name": "my-package"}
    }

YAML files (``.yaml`` / ``.yml``) with the same shape are accepted too.
Any problem here is fatal: the server must not start with a broken registry.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from pigi.domain.entities import Registry
from pigi.domain.models import Repository

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


class RegistryError(Exception):
    """Raised when the registry source is missing or malformed."""


def _parse_document(path: Path, text: str) -> Any:
    if path.suffix.lower() in _YAML_SUFFIXES:
        return yaml.safe_load(text)
    return json.loads(text)


def load_registry(path: Union[str, Path]) -> Registry:
    """
    Read and validate the registry file at ``path``.

    Raises:
        RegistryError: the file cannot be read, is not valid JSON/YAML, is not
            a mapping, or one of its entries is not a valid repository.
    """
    path = Path(path).expanduser()

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RegistryError(f"Failed to load repos config file {path}: {e}") from e

    try:
        raw = _parse_document(path, text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RegistryError(f"Failed to process config file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise RegistryError(
            f"Failed to process config file {path}: expected a mapping of package names"
        )

    repositories: Dict[str, Repository] = {}
    for package_name, entry in raw.items():
        # Each name must fit in a single URL path segment.
        if not isinstance(package_name, str) or not package_name or "/" in package_name:
            raise RegistryError(f"Invalid package name {package_name!r} in {path}")
        try:
            repositories[package_name] = Repository.model_validate(entry)
        except ValidationError as e:
            raise RegistryError(
                f"Invalid repository for package {package_name!r} in {path}: {e}"
            ) from e

    logger.info("Loaded %d packages from %s", len(repositories), path)
    return Registry(repositories)
