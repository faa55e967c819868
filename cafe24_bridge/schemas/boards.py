"""Schemas for the public board relay and the admin API test routes."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ExternalArticleRequest(BaseModel):
    """Simplified article fields posted by the storefront skin script."""

    model_config = ConfigDict(populate_by_name=True)

    board_no: str = Field("5", alias="boardNo")
    writer: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    category: str = "1"
    writer_email: Optional[str] = Field(None, alias="writerEmail")
    member_id: Optional[str] = Field(None, alias="memberId")
    nick_name: Optional[str] = Field(None, alias="nickName")
    is_secret: bool = Field(False, alias="isSecret")
    is_notice: bool = Field(False, alias="isNotice")
    attach_file_urls: list[Any] = Field(default_factory=list, alias="attachFileUrls")

    @field_validator("board_no", "category", mode="before")
    @classmethod
    def _stringify_numbers(cls, value: Any, info: ValidationInfo) -> Any:
        """Skin scripts send board and category numbers as ints, strings or null."""
        if value is None:
            return cls.model_fields[info.field_name].default
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("is_secret", "is_notice", mode="before")
    @classmethod
    def _null_flag(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("attach_file_urls", mode="before")
    @classmethod
    def _null_attachments(cls, value: Any) -> Any:
        return [] if value is None else value

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("writer", "title", "content")
            if not getattr(self, name)
        ]


class ApiTestRequest(BaseModel):
    """Arbitrary admin call issued from the operator test page."""

    endpoint: str = "/api/v2/admin/shop"
    method: str = "GET"
    data: Optional[Any] = None


class ProductQuery(BaseModel):
    """Filters accepted by the product listing test route."""

    limit: int = 10
    offset: int = 0
    product_name: str = ""
    category: str = ""
    display: str = ""
    selling: str = ""

    def filters(self) -> dict[str, str]:
        candidates = {
            "product_name": self.product_name,
            "category": self.category,
            "display": self.display,
            "selling": self.selling,
        }
        return {key: value for key, value in candidates.items() if value}


class BoardTestRequest(BaseModel):
    """Raw article payload forwarded verbatim to a board."""

    model_config = ConfigDict(populate_by_name=True)

    board_no: Optional[str] = Field(None, alias="boardNo")
    data: Any = None

    @field_validator("board_no", mode="before")
    @classmethod
    def _stringify_board_no(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


__all__ = [
    "ApiTestRequest",
    "BoardTestRequest",
    "ExternalArticleRequest",
    "ProductQuery",
]
