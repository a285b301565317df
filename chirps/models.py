"""
chirps/models.py -- Domain dataclass for chirps.

Pure data container. Body cleaning and length rules live in
chirps/validation.py; persistence lives in chirps/store.py.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime


@dataclass
class Chirp:
    """A short post. body is stored already cleaned.

    id is None before the record is written to the database.
    """

    body: str
    user_id: uuid.UUID
    id: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
