from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from pdfbake.svg_path import PathSegment, PathSyntaxError, parse_svg_path

ImageFormat = Literal["png", "jpeg"]

DEFAULT_FONT_SIZE = 12.0
DEFAULT_STROKE_WIDTH = 2.0


class _AnnotationBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore", allow_inf_nan=False)

    id: str
    page: int = Field(ge=1)  # 1-based, against the document as authored
    x: float  # viewport space, top-left anchor
    y: float

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class TextAnnotation(_AnnotationBase):
    type: Literal["text"] = "text"
    text: str = Field(min_length=1)
    font_size: float = Field(default=DEFAULT_FONT_SIZE, gt=0, alias="fontSize")
    color: str | None = None

    @field_validator("font_size", mode="before")
    @classmethod
    def _default_font_size(cls, v: Any) -> Any:
        return DEFAULT_FONT_SIZE if v is None or v == 0 else v


class RectAnnotation(_AnnotationBase):
    type: Literal["rect"] = "rect"
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    color: str | None = None


class ImageAnnotation(_AnnotationBase):
    type: Literal["image"] = "image"
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    image: str  # data URL: data:image/png;base64,....

    @field_validator("image")
    @classmethod
    def _check_payload(cls, v: str) -> str:
        _split_data_url(v)
        return v

    @property
    def format(self) -> ImageFormat:
        return "png" if self.image.startswith("data:image/png") else "jpeg"

    @property
    def payload(self) -> bytes:
        return _split_data_url(self.image)


class PathAnnotation(_AnnotationBase):
    type: Literal["path"] = "path"
    path: str = Field(min_length=1)  # SVG path data, path-local y-down coordinates
    color: str | None = None
    stroke_width: float = Field(default=DEFAULT_STROKE_WIDTH, gt=0, alias="strokeWidth")

    @field_validator("stroke_width", mode="before")
    @classmethod
    def _default_stroke_width(cls, v: Any) -> Any:
        return DEFAULT_STROKE_WIDTH if v is None or v == 0 else v

    @field_validator("path")
    @classmethod
    def _check_path(cls, v: str) -> str:
        try:
            parse_svg_path(v)
        except PathSyntaxError as e:
            raise ValueError(f"invalid path data: {e}") from e
        return v

    @property
    def segments(self) -> list[PathSegment]:
        return parse_svg_path(self.path)


Annotation = Annotated[
    Union[TextAnnotation, RectAnnotation, ImageAnnotation, PathAnnotation],
    Field(discriminator="type"),
]

_ANNOTATION_ADAPTER: TypeAdapter = TypeAdapter(Annotation)
_ANNOTATION_CLASSES = (TextAnnotation, RectAnnotation, ImageAnnotation, PathAnnotation)


class Rejected(BaseModel):
    """A record that failed validation; it is dropped from the batch."""

    model_config = ConfigDict(frozen=True)

    annotation_id: str | None = None
    kind: str | None = None
    reason: str


def _split_data_url(value: str) -> bytes:
    head, sep, data = value.partition(",")
    if not sep:
        raise ValueError("image payload must be a data URL (missing ',')")
    if not head.startswith("data:"):
        raise ValueError("image payload must start with 'data:'")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"image payload is not valid base64: {e}") from e


def _summarize(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        parts.append(f"{loc}: {e.get('msg')}" if loc else str(e.get("msg")))
    return "; ".join(parts)


def validate_annotation(record: Any) -> TextAnnotation | RectAnnotation | ImageAnnotation | PathAnnotation | Rejected:
    """
    Validate one annotation record.

    Accepts a built annotation model (returned as-is) or a mapping using the
    authoring surface's field names. Never raises.
    """
    if isinstance(record, _ANNOTATION_CLASSES):
        return record
    if not isinstance(record, Mapping):
        return Rejected(reason=f"annotation must be an object, got {type(record).__name__}")

    raw_id = record.get("id")
    kind = record.get("type")
    try:
        return _ANNOTATION_ADAPTER.validate_python(dict(record))
    except ValidationError as e:
        return Rejected(
            annotation_id=None if raw_id is None else str(raw_id),
            kind=kind if isinstance(kind, str) else None,
            reason=_summarize(e),
        )
