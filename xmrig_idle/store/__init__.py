from .config import (
    apply_overrides,
    ensure_default_config_file,
    get_config_path,
    load_config,
    validate_config,
)

__all__ = [
    "apply_overrides",
    "ensure_default_config_file",
    "get_config_path",
    "load_config",
    "validate_config",
]
