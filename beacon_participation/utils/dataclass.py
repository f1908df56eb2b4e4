from dataclasses import dataclass, fields, is_dataclass
from functools import cache
from types import GenericAlias
from typing import Any, Self


@dataclass
class Nested:
    """
    Base class for dataclasses that converts all inner dicts into dataclasses
    Also works with lists of dataclasses

    Beacon API encodes uint64 values as decimal strings, so fields annotated
    with int (or NewType over int) are converted back to int.
    """
    def __post_init__(self):
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(field.type, GenericAlias):
                field_type = field.type.__args__[0]
                if is_dataclass(field_type):
                    factory = self.__get_dataclass_factory(field_type)
                    setattr(self, field.name, field.type.__origin__(
                        factory(**x) if not is_dataclass(x) else x for x in value
                    ))
            elif is_dataclass(field.type) and isinstance(value, dict):
                factory = self.__get_dataclass_factory(field.type)
                setattr(self, field.name, factory(**value))
            elif _is_int_type(field.type) and isinstance(value, str):
                setattr(self, field.name, int(value))

    @staticmethod
    def __get_dataclass_factory(field_type):
        if issubclass(field_type, FromResponse):
            return field_type.from_response
        return field_type


def _is_int_type(field_type: Any) -> bool:
    # NewType chain, e.g. SlotNumber -> int
    while hasattr(field_type, '__supertype__'):
        field_type = field_type.__supertype__
    return field_type is int


@cache
def _field_names(cls) -> frozenset[str]:
    return frozenset(field.name for field in fields(cls))


@dataclass
class FromResponse:
    """
    Class for extending dataclass with custom from_response method, ignored extra fields
    """

    @classmethod
    def from_response(cls, **kwargs) -> Self:
        class_field_names = _field_names(cls)
        return cls(**{k: v for k, v in kwargs.items() if k in class_field_names})
