"""設定解決モジュール。"""

from harnessconf.config._errors import (
    ConfigError,
    FieldParseError,
    OverlayNotFoundError,
    OverlayParseError,
    OverlayReadError,
    ResolutionStage,
    SchemaError,
    TransformError,
)
from harnessconf.config._loader import bundled_overlay_names
from harnessconf.config._resolver import resolve_config
from harnessconf.config._schema import (
    ConfigSchema,
    FieldDescriptor,
    FieldKind,
    Int32,
    Int64,
    Setting,
    describe_schema,
    walk_schema,
)

__all__ = [
    "ConfigError",
    "ConfigSchema",
    "FieldDescriptor",
    "FieldKind",
    "FieldParseError",
    "Int32",
    "Int64",
    "OverlayNotFoundError",
    "OverlayParseError",
    "OverlayReadError",
    "ResolutionStage",
    "SchemaError",
    "Setting",
    "TransformError",
    "bundled_overlay_names",
    "describe_schema",
    "resolve_config",
    "walk_schema",
]
