"""JSON encoding/decoding utilities for Pydantic BaseModel objects.

All writers are atomic: data is written to a temporary file next to the destination and then
renamed over it, so a reader never observes a partially written file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import List, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter

M = TypeVar("M", bound=BaseModel)


def atomic_write_bytes(path: Union[str, Path], data: bytes) -> None:
    """Atomically replace the contents of ``path`` with ``data``.

    Parameters
    ----------
    path : Union[str, Path]
        The destination file. Parent directories are created if they don't exist.
    data : bytes
        The new file contents.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def dump_json_list(objects: Sequence[BaseModel]) -> bytes:
    """Serialize a list of models as a JSON array with sorted object keys."""
    payload = [obj.model_dump(mode="json") for obj in objects]
    return json.dumps(payload, indent=2, sort_keys=True).encode("utf-8")


def parse_json_list(model_cls: Type[M], data: Union[str, bytes]) -> List[M]:
    """Parse a JSON array into a list of ``model_cls`` instances."""
    return TypeAdapter(List[model_cls]).validate_json(data)


def save_json_list(objects: Sequence[BaseModel], path: Union[str, Path]) -> None:
    """
    Save a list of Pydantic BaseModel objects to a file as a JSON array.

    Parameters
    ----------
    objects : Sequence[BaseModel]
        The models to be serialized and saved.
    path : Union[str, Path]
        The file path where the JSON array will be saved.
    """
    atomic_write_bytes(path, dump_json_list(objects))


def load_json_list(model_cls: Type[M], path: Union[str, Path]) -> List[M]:
    """
    Load a list of Pydantic BaseModel objects from a file containing a JSON array.

    Parameters
    ----------
    model_cls : Type[BaseModel]
        The Pydantic BaseModel class to instantiate for each array element.
    path : Union[str, Path]
        The file path of the JSON file to load.

    Returns
    -------
    List[BaseModel]
        One ``model_cls`` instance per array element.
    """
    with open(Path(path), "rb") as f:
        return parse_json_list(model_cls, f.read())
