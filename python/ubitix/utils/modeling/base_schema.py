import inspect
from ipaddress import IPv6Network
from pathlib import Path
from typing import Any, Dict, List, Set, Tuple, Type, TypeVar, Union

from .exceptions import AggregateDataValidationError, DataValidationError
from .types import (
    get_annotations,
    get_generic_type_argument,
    get_generic_type_arguments,
    get_optional_inner_type,
    is_internal_field_name,
    is_list,
    is_literal,
    is_none_type,
    is_optional,
    is_union,
)

T = TypeVar("T")

# types constructed straight from a string, a 'ValueError' means invalid input
VALUE_TYPES: Tuple[type, ...] = (IPv6Network, Path)


def is_obj_type(obj: Any, types: Union[type, Tuple[Any, ...], Tuple[type, ...]]) -> bool:
    # To check specific type we are using 'type()' instead of 'isinstance()'
    # because for example 'bool' is instance of 'int', 'isinstance(False, int)' returns True.
    # pylint: disable=unidiomatic-typecheck
    if isinstance(types, tuple):
        return type(obj) in types
    return type(obj) is types


def _raise_collected(errs: List[DataValidationError], object_path: str) -> None:
    if len(errs) == 1:
        raise errs[0]
    if len(errs) > 1:
        raise AggregateDataValidationError(object_path, child_exceptions=errs)


TSource = Union[None, "BaseSchema", Dict[str, Any]]


class ObjectMapper:
    def _create_list(self, tp: Type[Any], obj: Any, object_path: str) -> List[Any]:
        if not isinstance(obj, list):
            raise DataValidationError(f"expected list, got '{type(obj).__name__}'", object_path)

        inner_type = get_generic_type_argument(tp)
        errs: List[DataValidationError] = []
        res: List[Any] = []
        for i, val in enumerate(obj):
            try:
                res.append(self.map_object(inner_type, val, object_path=f"{object_path}[{i}]"))
            except DataValidationError as e:
                errs.append(e)

        _raise_collected(errs, object_path)
        return res

    def _create_str(self, obj: Any, object_path: str) -> str:
        # we are willing to cast any primitive value to string, but no compound values are allowed
        if is_obj_type(obj, (str, float, int)):
            return str(obj)
        if is_obj_type(obj, bool):
            raise DataValidationError(
                "Expected str, found bool. Be careful, that YAML parsers consider even"
                ' "no" and "yes" as a bool. Please use quotes explicitly.',
                object_path,
            )
        raise DataValidationError(
            f"expected str (or number that would be cast to string), found {type(obj)}", object_path
        )

    def _create_int(self, obj: Any, object_path: str) -> int:
        if is_obj_type(obj, int):
            return obj
        raise DataValidationError(f"expected int, found {type(obj)}", object_path)

    def _create_bool(self, obj: Any, object_path: str) -> bool:
        if is_obj_type(obj, bool):
            return obj
        raise DataValidationError(f"expected bool, found {type(obj)}", object_path)

    def _create_literal(self, tp: Type[Any], obj: Any, object_path: str) -> Any:
        expected = get_generic_type_arguments(tp)
        if obj in expected:
            return obj
        raise DataValidationError(f"'{obj}' does not match any of the expected values {list(expected)}", object_path)

    def _create_value(self, tp: Type[T], obj: Any, object_path: str) -> T:
        if not isinstance(obj, str):
            raise DataValidationError(f"expected string for {tp.__name__}, found {type(obj)}", object_path)
        try:
            return tp(obj)  # type: ignore[call-arg]
        except ValueError as e:
            raise DataValidationError(f"failed to parse {tp.__name__}: {e}", object_path) from e

    def _create_base_schema_object(self, tp: Type[Any], obj: Any, object_path: str) -> "BaseSchema":
        if isinstance(obj, (dict, BaseSchema)):
            return tp(obj, object_path=object_path)
        raise DataValidationError(f"expected 'dict' or 'BaseSchema' object, found '{type(obj)}'", object_path)

    def map_object(self, tp: Type[Any], obj: Any, object_path: str = "/") -> Any:
        """
        Given an expected type 'tp' and a value object 'obj', return a new object of the given type.
        During the mapping procedure, runtime type checking is performed.
        """

        # pylint: disable=too-many-return-statements,too-many-branches

        if is_none_type(tp):
            if obj is None:
                return None
            raise DataValidationError(f"expected None, found '{obj}'.", object_path)

        # Optional[T]
        if is_optional(tp):
            if obj is None:
                return None
            return self.map_object(get_optional_inner_type(tp), obj, object_path)

        # after this, there is no place for a None object
        if obj is None:
            raise DataValidationError(f"unexpected value 'None' for type {tp}", object_path)

        if is_union(tp):
            raise NotImplementedError(f"Union types are not supported by the object mapper: {tp}")
        if tp == int:
            return self._create_int(obj, object_path)
        if tp == str:
            return self._create_str(obj, object_path)
        if tp == bool:
            return self._create_bool(obj, object_path)
        if is_literal(tp):
            return self._create_literal(tp, obj, object_path)
        if is_list(tp):
            return self._create_list(tp, obj, object_path)

        # the object is already of the expected type, e.g. a default value or a converted one
        if inspect.isclass(tp) and isinstance(obj, tp):
            return obj

        if tp in VALUE_TYPES:
            return self._create_value(tp, obj, object_path)
        if inspect.isclass(tp) and issubclass(tp, BaseSchema):
            return self._create_base_schema_object(tp, obj, object_path)

        raise DataValidationError(
            f"Type {tp} cannot be parsed. This is a implementation error. "
            "Please fix your types in the class or improve the parser/validator.",
            object_path,
        )

    def _get_converted_value(self, obj: Any, name: str, source: Dict[str, Any], object_path: str) -> Any:
        """
        Get a value of a field by invoking its transformation function.
        """
        func = getattr(obj.__class__, f"_{name}")
        try:
            return func(source)
        except ValueError as e:
            msg = e.args[0] if len(e.args) > 0 and isinstance(e.args[0], str) else "Failed to validate value"
            raise DataValidationError(msg, object_path) from e

    def _assign_fields(self, obj: Any, source: Dict[str, Any], object_path: str) -> Set[str]:
        cls = obj.__class__
        errs: List[DataValidationError] = []

        used_keys: Set[str] = set()
        for name, python_type in get_annotations(cls).items():
            if is_internal_field_name(name):
                continue
            field_path = f"{object_path}/{name}"
            try:
                # there is a transformation function to create the value
                if callable(getattr(cls, f"_{name}", None)):
                    if hasattr(cls, name):
                        raise RuntimeError(
                            f"Field '{cls.__name__}.{name}' has default value and transformation function at"
                            " the same time. That is now allowed. Store the default in the transformation function."
                        )
                    value = self._get_converted_value(obj, name, source, field_path)
                    used_keys.add(name)

                # source just contains the value
                elif source.get(name) is not None:
                    value = source[name]
                    used_keys.add(name)

                # there is a default value, or the type is optional => store the default or null
                elif hasattr(cls, name) or is_optional(python_type):
                    used_keys.add(name)
                    value = getattr(cls, name, None)

                # we expected a value but it was not there
                else:
                    errs.append(DataValidationError(f"missing attribute '{name}'.", field_path))
                    continue

                setattr(obj, name, self.map_object(python_type, value, object_path=field_path))
            except DataValidationError as e:
                errs.append(e)

        # check for unused keys in the source object
        for key in source.keys() - used_keys:
            errs.append(DataValidationError("unexpected extra key", f"{object_path}/{key}"))

        _raise_collected(errs, object_path or "/")
        return used_keys

    def object_constructor(self, obj: "BaseSchema", source: TSource, object_path: str) -> None:
        # pylint: disable=protected-access

        if isinstance(source, BaseSchema):
            source = {name: getattr(source, name) for name in get_annotations(source.__class__)}
        if not isinstance(source, dict):
            raise DataValidationError(f"expected dict-like object, found '{type(source)}'", object_path or "/")

        self._assign_fields(obj, source, object_path)

        # validate the constructed value
        try:
            obj._validate()
        except ValueError as e:
            raise DataValidationError(e.args[0] if len(e.args) > 0 else "Validation error", object_path or "/") from e


class BaseSchema:
    """
    Base class for modeling configuration schema. It somewhat resembles standard dataclasses with additional
    type validation and data conversion.

    Fields are class-level type-annotated attributes. A value assigned to the field in the class body is its
    default, an 'Optional' field defaults to None. Supported types are 'str', 'int', 'bool', 'Literal',
    'Optional', 'List', IPv6 networks, paths and nested 'BaseSchema' subclasses.

    A field 'name' can also be produced by a transformation function '_name(source)', a static method that
    gets the whole source dictionary. It reports invalid input by raising 'ValueError'.

    Once all the fields are assigned, '_validate()' is called to check the object as a whole.
    All errors are collected and reported at once together with the path of the offending value.
    """

    _MAPPER: ObjectMapper = ObjectMapper()

    def __init__(self, source: TSource = None, object_path: str = ""):
        self._MAPPER.object_constructor(self, source or {}, object_path)

    def _validate(self) -> None:
        """
        Validation procedure called after all field are assigned. Should throw a ValueError in case of failure.
        """

    def __eq__(self, o: object) -> bool:
        cls = self.__class__
        if not isinstance(o, cls):
            return False
        return all(getattr(self, name) == getattr(o, name) for name in get_annotations(cls))


__all__ = ["BaseSchema", "ObjectMapper", "is_obj_type"]
