"""Pydantic schema for rows of the court-registry name-character list."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

log = logging.getLogger(__name__)


class RegistryBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning(
            "Registry %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class GovHanjaRecord(RegistryBaseModel):
    """One registry row; ``cd`` is the hexadecimal code point of the character."""

    cd: str
    rnum: int | None = None
    ineum: str | None = None
    gloss: str | None = Field(default=None, alias="in")
    totstroke: int | None = None
    stroke: int | None = None
    rad_id: int | None = None
    type: str | None = None
    dic: str | None = None
    ex: int | None = None
    em: int | None = None
    isin: int | None = None


# Rows are validated one by one so a single bad row does not reject the list.
RegistryPayload = TypeAdapter(list[dict[str, object]])
