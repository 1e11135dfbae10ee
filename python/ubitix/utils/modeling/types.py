import inspect
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar, Union

NoneType = type(None)


def get_annotations(obj: Any) -> Dict[str, Any]:
    if hasattr(inspect, "get_annotations"):
        return inspect.get_annotations(obj)
    return obj.__dict__.get("__annotations__", {})


def is_optional(tp: Any) -> bool:
    origin = getattr(tp, "__origin__", None)
    args = get_generic_type_arguments(tp)

    return origin == Union and len(args) == 2 and args[1] == NoneType  # type: ignore


def is_list(tp: Any) -> bool:
    return getattr(tp, "__origin__", None) in (List, list)


def is_union(tp: Any) -> bool:
    """Returns true even for optional types, because they are just a Union[T, NoneType]"""
    return getattr(tp, "__origin__", None) == Union  # type: ignore


def is_literal(tp: Any) -> bool:
    return getattr(tp, "__origin__", None) == Literal


def is_none_type(tp: Any) -> bool:
    return tp is None or tp == NoneType


def get_generic_type_arguments(tp: Any) -> List[Any]:
    default: List[Any] = []
    return getattr(tp, "__args__", default)


def get_generic_type_argument(tp: Any) -> Any:
    """same as function get_generic_type_arguments, but expects just one type argument"""

    args = get_generic_type_arguments(tp)
    assert len(args) == 1
    return args[0]


T = TypeVar("T")


def get_optional_inner_type(optional: Type[Optional[T]]) -> Type[T]:
    assert is_optional(optional)
    t: Type[T] = get_generic_type_arguments(optional)[0]
    return t


def is_internal_field_name(field_name: str) -> bool:
    return field_name.startswith("_")
