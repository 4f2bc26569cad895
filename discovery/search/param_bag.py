"""
Multi-valued request parameter container handed to the backend connectors
"""
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote_plus


class ParamBag:
    """Ordered mapping of parameter name to a list of values"""

    def __init__(self, params: Optional[Dict[str, Any]] = None):
        self._params: Dict[str, List[str]] = {}
        for name, value in (params or {}).items():
            self.set(name, value)

    def __len__(self) -> int:
        return len(self._params)

    def __contains__(self, name: str) -> bool:
        return name in self._params

    def __repr__(self) -> str:
        return f"ParamBag({self._params!r})"

    def get(self, name: str) -> Optional[List[str]]:
        """Return all values of a parameter or None if it is not set"""
        return self._params.get(name)

    def get_first(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value of a parameter"""
        values = self._params.get(name)
        return values[0] if values else default

    def has(self, name: str, value: Optional[Any] = None) -> bool:
        """Is the parameter set (optionally: with the given value)?"""
        if name not in self._params:
            return False
        return value is None or str(value) in self._params[name]

    def set(self, name: str, value: Any) -> None:
        """Replace all values of a parameter"""
        if isinstance(value, (list, tuple)):
            self._params[name] = [self._to_str(v) for v in value]
        else:
            self._params[name] = [self._to_str(value)]

    def add(self, name: str, value: Any) -> None:
        """Append a value to a parameter"""
        values = value if isinstance(value, (list, tuple)) else [value]
        self._params.setdefault(name, []).extend(self._to_str(v) for v in values)

    def remove(self, name: str) -> None:
        self._params.pop(name, None)

    def merge(self, other: "ParamBag") -> None:
        """Append all values of another bag to this one"""
        for name, values in other.to_dict().items():
            self.add(name, values)

    def merge_with_all(self, bags: Iterable["ParamBag"]) -> None:
        for bag in bags:
            self.merge(bag)

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self._params.items()}

    def request(self) -> List[str]:
        """
        Return the bag as a list of URL-encoded name=value pairs.

        Names are encoded too; one pair is produced for every value.
        """
        pairs = []
        for name, values in self._params.items():
            for value in values:
                pairs.append(f"{quote_plus(name)}={quote_plus(value)}")
        return pairs

    @staticmethod
    def _to_str(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
