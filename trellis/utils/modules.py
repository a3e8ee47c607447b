"""
Load Python modules from application-relative paths.
"""

from pathlib import Path
from types import ModuleType
from typing import Optional
import importlib.util
import zlib
import sys


def resolve_module_path(root: str | Path, relative: str) -> Optional[Path]:
    """
    Find the source file for ``relative`` under ``root``.

    ``models/users`` matches ``models/users.py`` or the package
    ``models/users/__init__.py``. Paths may not escape ``root``.
    """
    root = Path(root).resolve()
    base = (root / relative).resolve()
    if root not in base.parents:
        return None

    candidates = [base] if base.suffix == ".py" else [base.with_name(base.name + ".py"), base / "__init__.py"]
    for candidate in candidates:
        candidate = candidate.resolve()
        if root in candidate.parents and candidate.is_file():
            return candidate
    return None


def load_module(path: Path, module_name: str) -> ModuleType:
    """
    Execute a source file as a module and register it in ``sys.modules``.

    A module already loaded under ``module_name`` is returned as-is.
    """
    existing = sys.modules.get(module_name)
    if existing is not None:
        return existing

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


def module_name_for(root: str | Path, relative: str, namespace: str = "trellis_app") -> str:
    """Stable, unique module name for an application-relative path."""
    digest = zlib.crc32(str(Path(root).resolve()).encode("utf-8"))
    parts = [p for p in Path(relative).with_suffix("").parts if p not in ("", ".")]
    clean = [p.replace("-", "_").replace(".", "_") for p in parts]
    return ".".join([f"{namespace}_{digest}", *clean])
