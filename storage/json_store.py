"""JSON-Datei-Ablage: der komplette Datensatz in einer Datei."""

import os
import logging
import tempfile
from pathlib import Path

from models.campus_data import CampusData
from storage.memory import InMemoryCampusStore

logger = logging.getLogger(__name__)


class JsonCampusStore(InMemoryCampusStore):
    """Persistiert den Datensatz als JSON (Format wie CampusData.save_json).

    Jeder Schreibvorgang schreibt eine temporäre Datei im Zielverzeichnis und
    ersetzt die alte Datei per os.replace. Schlägt das Schreiben fehl, bleiben
    Datei und Speicherstand unverändert.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        if self.path.exists():
            data = CampusData.load_json(self.path)
            logger.debug(f"Datensatz geladen: {self.path}")
        else:
            data = CampusData()
            logger.debug(f"Neue Ablage (Datei existiert noch nicht): {self.path}")
        super().__init__(data)

    def reload(self) -> None:
        """Liest die Datei neu ein."""
        self._data = CampusData.load_json(self.path)

    def save(self) -> None:
        """Schreibt den aktuellen Stand (z.B. nach dem ersten Anlegen)."""
        self._commit(self._data)

    def _commit(self, data: CampusData) -> None:
        data = data.stamped()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data.model_dump_json(indent=2))
            os.replace(tmp_name, self.path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        super()._commit(data)
