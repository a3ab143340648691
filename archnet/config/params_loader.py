"""Load and access analysis parameters from base_params.json"""
import json
from pathlib import Path
from typing import Any, Dict, Optional
import copy
import warnings


class ParamsLoader:
    """Single source of truth for analysis parameters"""

    def __init__(self, params_path: Optional[str] = None, overrides_path: Optional[Path] = None, overrides: Dict[str, Any] = None, strict: bool = True):
        if params_path is not None:
            params_file = Path(params_path)
        else:
            params_file = Path(__file__).parent / "base_params.json"

        with open(params_file, 'r') as f:
            self._params = json.load(f)
        self.params_file = str(params_file)

        if overrides_path is not None:
            with open(overrides_path, 'r') as f:
                file_overrides = json.load(f)
            self._params = self._deep_merge(self._params, file_overrides, strict=strict)

        if overrides:
            self._params = self._deep_merge(self._params, overrides, strict=strict)

    def _deep_merge(self, base: Any, override: Any, strict: bool = True, path: str = "") -> Any:
        """
        Recursive merge with strict type checking.

        Rules:
        - dict + dict -> recursive merge
        - empty dict in base -> open mapping, takes override keys as-is
        - list in override -> REPLACE base list
        - scalar -> replace
        - unknown keys in strict mode -> raise KeyError
        - type mismatch -> raise TypeError (int/float and None are compatible)
        """
        if isinstance(base, dict) and isinstance(override, dict):
            if not base:
                return copy.deepcopy(override)
            result = copy.deepcopy(base)
            for k, v in override.items():
                new_path = f"{path}.{k}" if path else k

                if k not in base:
                    if strict:
                        raise KeyError(f"Override key '{new_path}' does not exist in base params.")
                    warnings.warn(f"Override key '{new_path}' does not exist in base params. Adding it.")
                    result[k] = v
                else:
                    result[k] = self._deep_merge(base[k], v, strict=strict, path=new_path)
            return result

        if base is None or override is None:
            return override

        # bool is an int subclass; never let one stand in for the other
        bool_mismatch = isinstance(base, bool) != isinstance(override, bool)
        if bool_mismatch or not isinstance(override, type(base)):
            numeric = (
                not bool_mismatch
                and isinstance(base, (int, float))
                and isinstance(override, (int, float))
            )
            if not numeric:
                msg = f"Type mismatch at '{path}': expected {type(base).__name__}, got {type(override).__name__}"
                if strict:
                    raise TypeError(msg)
                warnings.warn(msg)

        return override

    def get(self, *keys: str, default: Any = None) -> Any:
        """Get nested parameter value from a sequence of keys"""
        value = self._params
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key, default)
            else:
                return default
        return value

    def snapshot(self) -> Dict[str, Any]:
        """Create a snapshot of parameters used (for reporting)"""
        return copy.deepcopy(self._params)
