"""Corpos JSON aceitos pelos endpoints do Proxy Gateway."""

from __future__ import annotations

import json
from abc import abstractmethod
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

BodyT = TypeVar("BodyT", bound="GatewayBody")


class GatewayBody(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @abstractmethod
    def is_complete(self) -> bool:
        """Campos obrigatórios presentes e válidos."""


class UploadInitBody(GatewayBody):
    display_name: str | None = Field(None, alias="displayName")
    mime_type: str | None = Field(None, alias="mimeType")
    size: float | None = None

    def is_complete(self) -> bool:
        return bool(self.mime_type) and bool(self.size) and self.size > 0


class PollBody(GatewayBody):
    file_name: str | None = Field(None, alias="fileName")

    def is_complete(self) -> bool:
        return bool(self.file_name)


class GenerateBody(GatewayBody):
    model: str | None = None
    payload: dict[str, Any] | None = None

    def is_complete(self) -> bool:
        return bool(self.model) and bool(self.payload)


def parse_body(raw: bytes, model: type[BodyT]) -> BodyT | None:
    """Decodifica e valida o corpo; None quando inválido ou incompleto."""
    try:
        data = json.loads(raw) if raw else None
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        body = model.model_validate(data)
    except ValidationError:
        return None
    if not body.is_complete():
        return None
    return body
