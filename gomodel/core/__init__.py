# Lazy imports so `from gomodel.core.errors import ...` and the resolver do
# not load the tree-sitter grammar.

__all__ = [
    "BuildContext",
    "CanonicalPackageRef",
    "Directory",
    "Package",
    "resolve",
    "open_directory",
    "open_directory_by_path",
]

_IMPORT_MAP = {
    "BuildContext": ".config",
    "CanonicalPackageRef": ".resolver",
    "resolve": ".resolver",
    "Directory": ".model",
    "Package": ".model",
    "open_directory": ".model",
    "open_directory_by_path": ".model",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'gomodel.core' has no attribute {name}")
