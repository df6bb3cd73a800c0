from __future__ import annotations

from dataclasses import dataclass


STATUS_DEACTIVATED = 256
STATUS_INFORMATIVE = 500
STATUS_OK = 501
STATUS_NOK = 502
STATUS_NOK_UPPER = 503
STATUS_NOK_LOWER = 504

WHITE = 16777215  # 0xFFFFFF
BLACK = 0

VALUE_KINDS = ("set", "actual")


@dataclass(frozen=True)
class ValueRow:
    """
    One row of a set-value or actual-value table.

    Notes
    - status is already normalized (see ingest.xml_parser.map_value_status).
    - value stays textual; numeric parsing is done by the consumers.
    - row_number is the cross-file join key, not unique within one file.
      It is an int unless the document gives a fraction (``3.5``).
    """
    description: str
    status: int
    value: str
    row_number: float
    unit: str = ""
    data_type: int = 0
    precision: int = 0
    text_color_description: int = BLACK
    back_color_description: int = WHITE
    text_color_unit: int = BLACK
    back_color_unit: int = WHITE
    text_color_value: int = BLACK
    back_color_value: int = WHITE

    @property
    def is_deactivated(self) -> bool:
        return self.status == STATUS_DEACTIVATED

    @property
    def is_nok(self) -> bool:
        return is_nok(self.status)


def is_nok(status: int) -> bool:
    """NOK, NOK upper and NOK lower (and any later code above them)."""
    return status >= STATUS_NOK


# Set and actual rows share one shape.
SetValue = ValueRow
ActualValue = ValueRow
