"""
designs/models.py -- Domain dataclasses for jewelry design submissions.

These are pure data containers with zero logic. Validation lives in
api/models.py (request shape) and designs/files.py (attachments); persistence
lives in designs/store.py.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class SideStone:
    """One accent stone row on a design. id is a client-side row key."""

    id: str
    description: str = ""
    shape: str = ""
    weight: str = ""


@dataclass
class Design:
    """A customer's design submission.

    Weights are kept as the text the customer typed ("3.5", "approx 4g") --
    the portal records specifications, it does not compute with them.

    logo_data / media_data hold base64 data URLs exactly as submitted; see
    designs/files.py for the accepted content types.

    id is None before the record is written to the database.
    """

    user_id: int
    design_number: str
    style: str
    gold_karat: str
    approx_gold_weight: str
    stone_type: str
    diamond_shape: str
    carat_weight: str
    clarity: str
    side_stones: list[SideStone] = field(default_factory=list)
    marking: str = ""
    logo_file_name: Optional[str] = None
    logo_data: Optional[str] = None
    media_file_name: Optional[str] = None
    media_data: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""
