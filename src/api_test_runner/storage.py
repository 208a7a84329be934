"""
Read-only lookup of stored workspaces and collections.

Layout of a YAML storage directory::

    <root>/<workspace_id>/workspace.yaml
    <root>/<workspace_id>/collections/<collection>.yaml
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CollectionStore(ABC):
    """Source of the workspaces and collections a test run can target."""

    @abstractmethod
    def get_workspace(self, workspace_id: str) -> Optional[Dict[str, Any]]:
        """
        Look up a workspace.

        Returns:
            Workspace mapping, or None if it does not exist
        """
        pass

    @abstractmethod
    def get_collection(self, workspace_id: str, collection_id: str) -> Optional[Dict[str, Any]]:
        """
        Look up a collection of a workspace.

        Returns:
            Collection mapping with ``requests`` and ``folders``, or None if
            it does not exist
        """
        pass


def _read_yaml(path: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in '{path}': {e}")
    except OSError as e:
        raise ConfigurationError(f"Unable to read '{path}': {e}")


class YamlCollectionStore(CollectionStore):
    """Collection store backed by a directory of YAML files."""

    def __init__(self, root: str):
        self.root = root

    def _workspace_dir(self, workspace_id: str) -> str:
        return os.path.join(self.root, workspace_id)

    def get_workspace(self, workspace_id: str) -> Optional[Dict[str, Any]]:
        path = os.path.join(self._workspace_dir(workspace_id), "workspace.yaml")
        if not os.path.isfile(path):
            logger.debug("No workspace file at %s", path)
            return None
        return _read_yaml(path) or {"id": workspace_id}

    def get_collection(self, workspace_id: str, collection_id: str) -> Optional[Dict[str, Any]]:
        collections_dir = os.path.join(self._workspace_dir(workspace_id), "collections")
        if not os.path.isdir(collections_dir):
            return None

        # File names are derived from collection names, so match on the stored id
        for filename in sorted(os.listdir(collections_dir)):
            if not filename.endswith((".yaml", ".yml")):
                continue
            path = os.path.join(collections_dir, filename)
            try:
                data = _read_yaml(path)
            except ConfigurationError as e:
                logger.warning("Skipping unreadable collection file: %s", e)
                continue
            if isinstance(data, dict) and data.get("id") == collection_id:
                logger.debug("Loaded collection %s from %s", collection_id, path)
                return data

        return None
