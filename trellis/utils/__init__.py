"""Internal helpers."""

from .modules import load_module, module_name_for, resolve_module_path

__all__ = ["load_module", "module_name_for", "resolve_module_path"]
