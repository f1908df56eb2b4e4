import dataclasses
import json
import logging
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping

from beacon_participation import variables


def convert_to_json_compatible(data: Any) -> Any:
    if isinstance(data, bytes):
        return '0x' + data.hex()
    if isinstance(data, Enum):
        return data.value
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return convert_to_json_compatible(dataclasses.asdict(data))
    if isinstance(data, Mapping):
        return {key: convert_to_json_compatible(value) for key, value in data.items()}
    if isinstance(data, Iterator):
        return [convert_to_json_compatible(item) for item in data]
    if isinstance(data, Iterable) and not isinstance(data, str):
        return type(data)(convert_to_json_compatible(item) for item in data)  # type: ignore
    return data


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = record.msg if isinstance(record.msg, dict) else {'msg': record.getMessage()}

        message = convert_to_json_compatible(message)

        if record.exc_info and 'error' not in message:
            message['error'] = self.formatException(record.exc_info)

        return json.dumps({
            'timestamp': int(record.created),
            'name': record.name,
            'levelname': record.levelname,
            'funcName': record.funcName,
            'lineno': record.lineno,
            'module': record.module,
            **message,
        }, default=str)


handler = logging.StreamHandler()
handler.setFormatter(JsonFormatter())

logging.basicConfig(
    level=variables.LOG_LEVEL,
    handlers=[handler],
)
