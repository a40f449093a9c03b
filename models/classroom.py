"""Datenmodell für einen Hörsaal / Seminarraum (Pydantic v2)."""

from typing import Union

from pydantic import BaseModel, Field


class Classroom(BaseModel):
    """Repräsentiert einen physischen Raum."""

    id: str
    building: str = ""
    room_number: str = ""
    capacity: int = Field(ge=0)
    # Ausstattung, z.B. {"projector": True, "whiteboard": True, "lab": "chemie"}
    features: dict[str, Union[bool, str]] = {}

    def has_feature(self, feature: str) -> bool:
        """True wenn das Feature vorhanden und gesetzt (truthy) ist."""
        return bool(self.features.get(feature))

    def missing_features(self, required: list[str]) -> list[str]:
        """Alle geforderten Features, die dieser Raum nicht bietet."""
        return [f for f in required if not self.has_feature(f)]

    @property
    def label(self) -> str:
        """Anzeigename "Gebäude Raum" (Fallback: ID)."""
        text = f"{self.building} {self.room_number}".strip()
        return text or self.id
