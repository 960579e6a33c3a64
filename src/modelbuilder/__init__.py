"""Type-directed construction of model objects from parsed JSON documents."""
from modelbuilder.builder import (
    ModelBuilder,
    build_array,
    build_model,
    default_builder,
    with_properties,
)
from modelbuilder.dates import INVALID_DATE, Date
from modelbuilder.declarations import (
    Build,
    builder,
    element_type_of,
    infer_field_type,
    register_field_type,
)
from modelbuilder.metadata import DEFAULT_STORE, TypeMetadataStore
from modelbuilder.strategies import Strategy, with_constructor

__all__ = [
    "DEFAULT_STORE",
    "INVALID_DATE",
    "Build",
    "Date",
    "ModelBuilder",
    "Strategy",
    "TypeMetadataStore",
    "build_array",
    "build_model",
    "builder",
    "default_builder",
    "element_type_of",
    "infer_field_type",
    "register_field_type",
    "with_constructor",
    "with_properties",
]
