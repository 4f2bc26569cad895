"""
Search specs loading

Search specs are YAML files describing how each search type maps onto Solr
fields. A "<name>.local.yaml" file next to the base file overrides whole
search types.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from discovery.core.exceptions import SearchSpecsError

logger = logging.getLogger(__name__)


SOLR_SEARCHSPECS = "searchspecs.yaml"


class SearchSpecsReader:
    """Loads and caches search specs files from one directory"""

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self._cache: Dict[str, Dict[str, Any]] = {}

    def get(self, filename: str = SOLR_SEARCHSPECS) -> Dict[str, Any]:
        """
        Get the merged search specs of a file.

        Args:
            filename: Base file name inside the specs directory

        Returns:
            Search type name => spec mapping (empty if the file does not exist)

        Raises:
            SearchSpecsError: If a file cannot be parsed
        """
        if filename not in self._cache:
            base_path = self.directory / filename
            specs = self._load(base_path)
            local_path = base_path.with_name(f"{base_path.stem}.local{base_path.suffix}")
            if local_path.exists():
                for search_type, spec in self._load(local_path).items():
                    specs[search_type] = spec
                logger.info(f"Applied local search specs override {local_path}")
            self._cache[filename] = specs
        return self._cache[filename]

    def clear(self) -> None:
        self._cache.clear()

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        if not path.exists():
            logger.warning(f"Search specs file {path} not found")
            return {}
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except yaml.YAMLError as e:
            raise SearchSpecsError(f"Could not parse search specs {path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SearchSpecsError(f"Search specs {path} must contain a mapping")
        return data


def get_search_specs(specs: Dict[str, Any], name: Optional[str]) -> Optional[Dict[str, Any]]:
    """Look up a search type, falling back to a case-insensitive match"""
    if not name:
        return None
    if name in specs:
        return specs[name]
    lowered = name.lower()
    for search_type, spec in specs.items():
        if str(search_type).lower() == lowered:
            return spec
    return None
