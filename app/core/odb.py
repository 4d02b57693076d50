# ============================================================
# File: odb.py - shared hierarchical store (YAML backed)
# ============================================================
# Method list:
# 1. load()          - load the tree from the YAML file
# 2. flush()         - write the tree back to the YAML file
# 3. get()           - read a value by path
# 4. set()           - write a value by path (creates parents)
# 5. exists()        - check whether a path exists
# 6. ensure()        - create missing keys below a path
# 7. set_element()   - write one element of an array
# 8. resize()        - resize an array, keeping existing values
# ============================================================

import copy
import os
import threading
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional


def split_path(path: str) -> List[str]:
    """'/Equipment/EPICS/Settings' -> ['Equipment', 'EPICS', 'Settings']"""
    return [part for part in path.split('/') if part]


class SharedStore:
    """Hierarchical key/value store persisted as a YAML file

    Keys are addressed with slash separated paths, e.g.
    ``/Equipment/EPICS/Variables/Measured``. All access goes through one
    lock; file writes only happen on flush().
    """

    def __init__(self, file_path: Optional[str] = None):
        self.file_path = Path(file_path) if file_path else None
        self._tree: Dict[str, Any] = {}
        self._lock = threading.RLock()
        self._dirty = False

    # ------------------------------------------------------------
    # 1. load() - load the tree from the YAML file
    # ------------------------------------------------------------
    def load(self) -> "SharedStore":
        """Load the tree from disk (a missing file yields an empty tree)"""
        with self._lock:
            if self.file_path is None or not self.file_path.exists():
                self._tree = {}
                return self

            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}

            if not isinstance(data, dict):
                raise ValueError(f"store file {self.file_path} does not contain a mapping")
            self._tree = data
            self._dirty = False
        return self

    # ------------------------------------------------------------
    # 2. flush() - write the tree back to the YAML file
    # ------------------------------------------------------------
    def flush(self, force: bool = False) -> bool:
        """Write pending changes to disk

        Returns:
            bool: True if the file was written
        """
        with self._lock:
            if self.file_path is None or (not self._dirty and not force):
                return False

            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.file_path.with_suffix(self.file_path.suffix + '.tmp')
            with open(tmp_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(self._tree, f, allow_unicode=True, sort_keys=False,
                               default_flow_style=False)
            os.replace(tmp_path, self.file_path)
            self._dirty = False
            return True

    # ------------------------------------------------------------
    # 3. get() - read a value by path
    # ------------------------------------------------------------
    def get(self, path: str, default: Any = None) -> Any:
        """Return a deep copy of the value at path, or default"""
        with self._lock:
            node = self._find(path)
            if node is _MISSING:
                return default
            return copy.deepcopy(node)

    # ------------------------------------------------------------
    # 4. set() - write a value by path
    # ------------------------------------------------------------
    def set(self, path: str, value: Any) -> None:
        parts = split_path(path)
        if not parts:
            raise KeyError("cannot set the store root")

        with self._lock:
            parent = self._make_parents(parts[:-1])
            parent[parts[-1]] = copy.deepcopy(value)
            self._dirty = True

    # ------------------------------------------------------------
    # 5. exists() - check whether a path exists
    # ------------------------------------------------------------
    def exists(self, path: str) -> bool:
        with self._lock:
            return self._find(path) is not _MISSING

    # ------------------------------------------------------------
    # 6. ensure() - create missing keys below a path
    # ------------------------------------------------------------
    def ensure(self, path: str, defaults: Dict[str, Any]) -> Dict[str, Any]:
        """Create the keys of defaults that are missing below path

        Existing keys are left untouched.

        Returns:
            the resulting subtree (copy)
        """
        with self._lock:
            node = self._make_parents(split_path(path))
            for key, value in defaults.items():
                if key not in node:
                    node[key] = copy.deepcopy(value)
                    self._dirty = True
            return copy.deepcopy(node)

    # ------------------------------------------------------------
    # 7. set_element() - write one element of an array
    # ------------------------------------------------------------
    def set_element(self, path: str, index: int, value: Any) -> None:
        with self._lock:
            node = self._find(path)
            if not isinstance(node, list):
                raise KeyError(f"{path} is not an array")
            if index < 0 or index >= len(node):
                raise IndexError(f"{path}[{index}] out of range (size {len(node)})")
            node[index] = value
            self._dirty = True

    # ------------------------------------------------------------
    # 8. resize() - resize an array, keeping existing values
    # ------------------------------------------------------------
    def resize(self, path: str, length: int, fill: Any = 0.0) -> List[Any]:
        """Resize the array at path to length

        Existing values are kept, new elements get fill, a missing array is
        created fresh.
        """
        if length < 0:
            raise ValueError("length must be >= 0")

        with self._lock:
            node = self._find(path)
            if node is _MISSING or not isinstance(node, list):
                array = [fill] * length
            else:
                array = node[:length] + [fill] * max(0, length - len(node))
            self.set(path, array)
            return list(array)

    # ------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------
    def _find(self, path: str) -> Any:
        node: Any = self._tree
        for part in split_path(path):
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def _make_parents(self, parts: List[str]) -> Dict[str, Any]:
        node = self._tree
        for part in parts:
            child = node.get(part)
            if not isinstance(child, dict):
                if child is not None:
                    raise KeyError(f"/{part} is a value, not a directory")
                child = {}
                node[part] = child
                self._dirty = True
            node = child
        return node


class _Missing:
    def __repr__(self):
        return "<missing>"


_MISSING = _Missing()
