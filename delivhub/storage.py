"""File-based storage for saved tours and couriers."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class TourNotFoundError(LookupError):
    """Raised when a saved tour id has no file."""


def _millis() -> int:
    return int(time.time() * 1000)


class TourStore:
    """One JSON document per tour under ``saved_tours/`` and a courier list
    in ``saved_data/couriers.json``."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()
        self.tours_dir = self.root / "saved_tours"
        self.couriers_file = self.root / "saved_data" / "couriers.json"
        self.tours_dir.mkdir(parents=True, exist_ok=True)
        self.couriers_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.couriers_file.exists():
            self._write_json(self.couriers_file, [])

    @staticmethod
    def _write_json(path: Path, data: Any) -> None:
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2)

    @staticmethod
    def _read_json(path: Path) -> Any:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def _tour_path(self, tour_id: str) -> Path:
        name = Path(str(tour_id)).name
        if not name or name != str(tour_id):
            raise TourNotFoundError(f"Invalid tour id: {tour_id!r}")
        return self.tours_dir / f"{name}.json"

    # Tours

    def save_tour(self, tour: Dict[str, Any]) -> Dict[str, str]:
        """Write a tour document, assigning ``tour_<ms>`` when it has no id."""
        data = dict(tour)
        tour_id = str(data.get("id") or f"tour_{_millis()}")
        data["id"] = tour_id
        path = self._tour_path(tour_id)
        self._write_json(path, data)
        logger.info("Tour saved: %s", path.name)
        return {"tourId": tour_id, "filename": path.name}

    def list_tours(self) -> List[Dict[str, Any]]:
        """Summary records of every saved tour, sorted by filename."""
        records = []
        for path in sorted(self.tours_dir.glob("*.json")):
            record: Dict[str, Any] = {"filename": path.name, "tourId": path.stem}
            try:
                data = self._read_json(path)
            except (OSError, ValueError) as exc:
                logger.warning("Saved tour %s is unreadable: %s", path.name, exc)
                records.append(record)
                continue
            if isinstance(data, dict):
                courier = data.get("courier")
                record.update(
                    id=data.get("id") or path.stem,
                    departureTime=data.get("departureTime"),
                    courier=courier.get("name") if isinstance(courier, dict) else courier,
                    totalDuration=data.get("totalDuration"),
                    totalDistance=data.get("totalDistance"),
                )
            records.append(record)
        return records

    def load_tour(self, tour_id: str) -> Dict[str, Any]:
        path = self._tour_path(tour_id)
        if not path.exists():
            raise TourNotFoundError(f"Tour {tour_id} not found")
        return self._read_json(path)

    # Couriers

    def list_couriers(self) -> List[Dict[str, Any]]:
        if not self.couriers_file.exists():
            self._write_json(self.couriers_file, [])
        return self._read_json(self.couriers_file) or []

    def save_courier(self, name: str, courier_id: Optional[str] = None) -> Dict[str, Any]:
        """Create a courier, or rename the one with ``courier_id``."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Courier name is required")
        couriers = self.list_couriers()
        if courier_id:
            for courier in couriers:
                if str(courier.get("id")) == str(courier_id):
                    courier["name"] = name
                    break
            else:
                couriers.append({"id": courier_id, "name": name})
        else:
            courier_id = f"C{_millis()}"
            couriers.append({"id": courier_id, "name": name})
        self._write_json(self.couriers_file, couriers)
        logger.info("Courier saved: %s (%s)", name, courier_id)
        return {"id": courier_id, "name": name}
