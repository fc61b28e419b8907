"""
Data model for DelivHub.

The core consumes plain JSON-shaped documents (plans, tours, demands,
clusters and saved-tour summaries). This module turns them into small
dataclasses. Parsing never raises for bad data: missing fields fall back
to defaults and inconsistencies are logged so that a single bad record
cannot blank the whole map.

Node ids are normalised to strings, so ``12`` and ``"12"`` refer to the
same node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _number(value: Any, default: float = 0.0) -> float:
    number = _to_float(value)
    return default if number is None else number


class StopType(str, Enum):
    WAREHOUSE = "WAREHOUSE"
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"

    @classmethod
    def parse(cls, value: Any) -> Optional["StopType"]:
        """Return the matching stop type, or ``None`` for an unknown tag."""
        if isinstance(value, StopType):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Node:
    id: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def located(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def coords(self) -> List[float]:
        return [self.latitude, self.longitude]

    @classmethod
    def from_json(cls, data: Any) -> Optional["Node"]:
        """Build a node from ``{id, latitude, longitude}`` or a bare id.

        A bare id (or a dict without coordinates) gives an unlocated node
        that has to be resolved through the plan before drawing.
        """
        if data is None:
            return None
        if isinstance(data, Node):
            return data
        if isinstance(data, dict):
            node_id = data.get("id")
            if node_id is None:
                return None
            return cls(
                id=str(node_id),
                latitude=_to_float(data.get("latitude")),
                longitude=_to_float(data.get("longitude")),
            )
        return cls(id=str(data))

    def to_json(self) -> Dict[str, Any]:
        return {"id": self.id, "latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class Segment:
    origin: str
    destination: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Optional["Segment"]:
        if not isinstance(data, dict):
            return None
        origin, destination = data.get("origin"), data.get("destination")
        if origin is None or destination is None:
            return None
        return cls(origin=str(origin), destination=str(destination))


def _address_id(value: Any) -> Optional[str]:
    # Addresses are node ids, but older documents embed the whole node.
    if value is None or value == "":
        return None
    if isinstance(value, Node):
        return value.id
    if isinstance(value, dict):
        node_id = value.get("id")
        return None if node_id is None else str(node_id)
    return str(value)


@dataclass
class Demand:
    id: str
    pickup_address: Optional[str]
    delivery_address: Optional[str]
    pickup_duration: float = 0.0
    delivery_duration: float = 0.0
    client_name: str = ""

    @classmethod
    def from_json(cls, data: Any) -> Optional["Demand"]:
        if isinstance(data, Demand):
            return data
        if not isinstance(data, dict):
            return None
        return cls(
            id=str(data.get("id", "")),
            pickup_address=_address_id(data.get("pickupAddress")),
            delivery_address=_address_id(data.get("deliveryAddress")),
            pickup_duration=_number(data.get("pickupDuration")),
            delivery_duration=_number(data.get("deliveryDuration")),
            client_name=str(data.get("clientName") or ""),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pickupAddress": self.pickup_address,
            "deliveryAddress": self.delivery_address,
            "pickupDuration": self.pickup_duration,
            "deliveryDuration": self.delivery_duration,
            "clientName": self.client_name,
        }


@dataclass
class TourPoint:
    type: Optional[StopType]
    node: Optional[Node]
    service_duration: float = 0.0
    demand: Optional[Demand] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["TourPoint"]:
        if isinstance(data, TourPoint):
            return data
        if not isinstance(data, dict):
            return None
        stop_type = StopType.parse(data.get("type"))
        if stop_type is None:
            logger.warning("Unknown stop type %r", data.get("type"))
        demand = data.get("demand")
        return cls(
            type=stop_type,
            node=Node.from_json(data.get("node")),
            service_duration=_number(data.get("serviceDuration")),
            demand=Demand.from_json(demand) if isinstance(demand, dict) else None,
        )


@dataclass
class Leg:
    path: List[Node] = field(default_factory=list)
    distance: float = 0.0
    travel_time: float = 0.0

    @classmethod
    def from_json(cls, data: Any) -> "Leg":
        if isinstance(data, Leg):
            return data
        if not isinstance(data, dict):
            return cls()
        path = [Node.from_json(n) for n in data.get("pathNode") or []]
        return cls(
            path=[n for n in path if n is not None],
            distance=_number(data.get("distance")),
            travel_time=_number(data.get("travelTime")),
        )


def _courier_name(courier: Any) -> str:
    if isinstance(courier, dict):
        return str(courier.get("name") or courier.get("id") or "")
    return "" if courier is None else str(courier)


@dataclass
class Tour:
    id: str
    departure_time: str = "00:00"
    stops: List[TourPoint] = field(default_factory=list)
    legs: List[Leg] = field(default_factory=list)
    total_distance: float = 0.0
    total_duration: float = 0.0
    courier: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["Tour"]:
        if isinstance(data, Tour):
            return data
        if not isinstance(data, dict):
            return None
        stops = [TourPoint.from_json(s) for s in data.get("stops") or []]
        legs = [Leg.from_json(l) for l in data.get("legs") or []]
        tour = cls(
            id=str(data.get("id", "")),
            departure_time=str(data.get("departureTime") or "00:00"),
            stops=[s for s in stops if s is not None],
            legs=legs,
            total_distance=_number(data.get("totalDistance")),
            total_duration=_number(data.get("totalDuration")),
            courier=_courier_name(data.get("courier")) or None,
        )
        expected = max(len(tour.stops) - 1, 0)
        if len(tour.legs) != expected:
            logger.warning(
                "Tour %s has %d legs for %d stops (expected %d)",
                tour.id, len(tour.legs), len(tour.stops), expected,
            )
        return tour


@dataclass(frozen=True)
class Centroid:
    lat: float
    lon: float

    @classmethod
    def from_json(cls, data: Any) -> Optional["Centroid"]:
        if not isinstance(data, dict):
            return None
        lat, lon = _to_float(data.get("lat")), _to_float(data.get("lon"))
        if lat is None or lon is None:
            return None
        return cls(lat=lat, lon=lon)


@dataclass
class Cluster:
    demands: List[Demand] = field(default_factory=list)
    centroid: Optional[Centroid] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["Cluster"]:
        if isinstance(data, Cluster):
            return data
        if not isinstance(data, dict):
            return None
        demands = [Demand.from_json(d) for d in data.get("demands") or []]
        return cls(
            demands=[d for d in demands if d is not None],
            centroid=Centroid.from_json(data.get("centroid")),
        )


class Plan:
    """Road-network graph a tour runs over, with a node lookup by id."""

    def __init__(self, nodes: Iterable[Node] = (), segments: Iterable[Segment] = ()):
        self.nodes: Dict[str, Node] = {}
        for node in nodes:
            if node.id in self.nodes:
                logger.warning("Duplicate node id %s ignored", node.id)
                continue
            self.nodes[node.id] = node
        self.segments: List[Segment] = list(segments)

    def __len__(self) -> int:
        return len(self.nodes)

    def get_node(self, node_id: Any) -> Optional[Node]:
        if node_id is None:
            return None
        return self.nodes.get(str(node_id))

    @classmethod
    def from_json(cls, data: Any) -> Optional["Plan"]:
        if isinstance(data, Plan):
            return data
        if not isinstance(data, dict):
            return None
        nodes = []
        for raw in data.get("nodes") or []:
            node = Node.from_json(raw)
            if node is None or not node.located:
                logger.warning("Plan node without coordinates skipped: %r", raw)
                continue
            nodes.append(node)
        segments = [Segment.from_json(s) for s in data.get("segments") or []]
        return cls(nodes, [s for s in segments if s is not None])


@dataclass
class HistoryRecord:
    """Summary of a saved tour, as listed by the tour store."""

    filename: str = ""
    tour_id: str = ""
    departure_time: str = ""
    courier: str = ""
    total_duration: Optional[float] = None
    total_distance: Optional[float] = None

    @property
    def title(self) -> str:
        return self.tour_id or self.filename

    @classmethod
    def from_json(cls, data: Any) -> Optional["HistoryRecord"]:
        if isinstance(data, HistoryRecord):
            return data
        if not isinstance(data, dict):
            return None
        # Durations and distances are only shown when they are real numbers.
        duration = data.get("totalDuration")
        distance = data.get("totalDistance")
        return cls(
            filename=str(data.get("filename") or ""),
            tour_id=str(data.get("id") or data.get("tourId") or ""),
            departure_time=str(data.get("departureTime") or ""),
            courier=_courier_name(data.get("courier")),
            total_duration=float(duration) if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
            total_distance=float(distance) if isinstance(distance, (int, float)) and not isinstance(distance, bool) else None,
        )
