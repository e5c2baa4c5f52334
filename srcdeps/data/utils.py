from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints

NonEmptyString = Annotated[str, StringConstraints(min_length=1)]
"""Type alias for non-empty strings with minimum length of 1."""


class BaseModelWithDocstrings(BaseModel):
    """Base model with the attribute docstrings being extracted to the model JSON schema."""

    model_config = ConfigDict(use_attribute_docstrings=True)


class FrozenModel(BaseModelWithDocstrings):
    """Immutable base model for records that act as identities or cache values.

    Instances hash only when every field value does. Models holding lists, or an unhashable
    ``Any`` payload, compare with ``==`` but are not usable as dict keys.
    """

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)
