"""Base model for pyballoons data objects.

Every model inherits from :class:`BalloonBaseModel` which provides:

* ``alias_generator=to_camel`` so snake_case fields serialise to the
  camelCase keys used on the wire (``hoursAgo``, ``cacheAgeSeconds``).
* Frozen instances; points and payloads are values, not records.
* ``allow_inf_nan=False`` so no NaN/infinite float is ever accepted.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BalloonBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        allow_inf_nan=False,
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialise with camelCase keys, omitting unset optional values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
