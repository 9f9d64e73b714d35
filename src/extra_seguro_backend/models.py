from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import encode_filename, encode_folder_path

GRAPH_API_BASE = "https://graph.microsoft.com/v1.0"


class FormRow(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    pieza: str = ""
    chapa: str = ""
    pintura: str = ""

    @field_validator("pieza", "chapa", "pintura", mode="before")
    @classmethod
    def none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class FormRecord(BaseModel):
    """Form data posted to ``/generate-pdf-editable``."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    taller: str = ""
    serieNumero: str = ""
    fecha: str = ""
    siniestro1: str = ""
    siniestro2: str = ""
    observaciones: str = ""
    tabla1: List[FormRow] = Field(default_factory=list)
    tabla2: List[FormRow] = Field(default_factory=list)
    canvasImage: Optional[str] = None

    @field_validator(
        "taller", "serieNumero", "fecha", "siniestro1", "siniestro2", "observaciones", mode="before"
    )
    @classmethod
    def none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tabla1", "tabla2", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("canvasImage", mode="before")
    @classmethod
    def blank_image(cls, value: Any) -> Any:
        # Clients send "" when the canvas was left untouched.
        return value or None

    def scalar(self, key: str) -> str:
        value = getattr(self, key, "")
        return value if isinstance(value, str) else ""

    def rows(self, key: str) -> List[FormRow]:
        value = getattr(self, key, None)
        return value if isinstance(value, list) else []


class RenderedField(BaseModel):
    name: str
    page: int
    x: float
    y: float
    width: float
    height: float
    value: str = ""
    font_size: float = 10


class UploadTarget(BaseModel):
    drive_id: str = ""
    site_id: str = ""
    folder: str
    filename: str

    @property
    def url(self) -> str:
        if self.drive_id:
            drive = f"{GRAPH_API_BASE}/drives/{self.drive_id}"
        else:
            drive = f"{GRAPH_API_BASE}/sites/{self.site_id}/drive"
        folder = encode_folder_path(self.folder)
        path = f"{folder}/{encode_filename(self.filename)}" if folder else encode_filename(self.filename)
        return f"{drive}/root:/{path}:/content"


class UploadResult(BaseModel):
    webUrl: str
    name: Optional[str] = None


class UploadResponse(UploadResult):
    ok: bool = True


class ErrorResponse(BaseModel):
    error: str


class FieldSpec(BaseModel):
    name: str
    x: float
    y: float
    width: float = 200
    height: float = 18
    sources: List[str]
    separator: str = ""


class ColumnSpec(BaseModel):
    key: str
    x: float
    width: float


class TableSpec(BaseModel):
    source: str
    prefix: str = ""
    columns: List[ColumnSpec]
    row_height: float = 20
    field_height: float = 16


class ImageSpec(BaseModel):
    x: float
    y: float
    width: float
    height: float


class PaginationSpec(BaseModel):
    enabled: bool = True
    low_water_mark: float = 80
    top_of_page: float = 760


class PdfLayout(BaseModel):
    page_width: float = 595
    page_height: float = 842
    font_name: str = "Helvetica"
    font_size: float = 10
    max_length: int = 1000
    header: List[FieldSpec]
    tables_start_y: float = 720
    table_gap: float = 0
    tables: List[TableSpec] = Field(default_factory=list)
    image: Optional[ImageSpec] = None
    pagination: PaginationSpec = Field(default_factory=PaginationSpec)
