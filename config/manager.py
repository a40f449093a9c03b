"""Konfigurationsmanager: Laden, Speichern und Validieren der Campus-Konfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.defaults import default_campus_config
from config.schema import CampusConfig

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Kursplaner — Campus-Konfiguration
# Version: 1.0
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "time_grid": (
        "Zeitraster",
        "Standard-Slots, falls beim Planen keine Slots vorgegeben werden.\n"
        "Reihenfolge = Suchreihenfolge (erster passender Slot gewinnt).",
    ),
    "solver": (
        "Solver",
        "Harte Constraints einzeln abschaltbar. max_steps / time_limit_seconds: 0 = unbegrenzt.\n"
        "Gewichte der weichen Constraints: höher = stärker optimiert. 0 = deaktiviert.",
    ),
    "calendar": (
        "Kalender-Export (iCal)",
        None,
    ),
    "storage": (
        "Datenablage",
        None,
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "campus_config.yaml"

    def __init__(self, path: Optional[Path] = None) -> None:
        if path is not None:
            self.DEFAULT_CONFIG = Path(path)

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> CampusConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = Path(path) if path else self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'kursplaner config init' aus, um eine Standard-Konfiguration anzulegen."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return CampusConfig.model_validate(json.loads(json.dumps(raw)))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    def load_or_default(self) -> CampusConfig:
        """Wie load(), fällt aber auf die Default-Konfiguration zurück."""
        if self.first_run_check():
            return default_campus_config()
        return self.load()

    # ─── Speichern ───

    def save(self, config: CampusConfig, path: Optional[Path] = None, quiet: bool = False) -> None:
        """Speichere Config als YAML mit deutschen Kommentaren."""
        target = Path(path) if path else self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        if not quiet:
            console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: CampusConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            if field not in cm:
                continue
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        # Inline-Kommentar für die Zeitzone
        calendar_map = CommentedMap(cm["calendar"])
        calendar_map.yaml_add_eol_comment("null = floating local time", "timezone")
        cm["calendar"] = calendar_map

        return cm
