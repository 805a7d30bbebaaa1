"""
Printer configuration models.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_PAPER_SIZE = "A4"


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class PrinterSettings(BaseModel):
    """
    Printer selection shared by every print call.

    Treated as an immutable value: updates replace the whole object, so a
    print call always sees one consistent snapshot.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    printer_name: Optional[str] = Field(
        None, description="Target printer (None = system default)"
    )
    paper_size: str = DEFAULT_PAPER_SIZE
    orientation: Orientation = Orientation.PORTRAIT

    @field_validator("printer_name")
    @classmethod
    def blank_printer_is_default(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("orientation", mode="before")
    @classmethod
    def normalize_orientation(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v
