"""JSON documents shared by the tests."""


def node(node_id, lat, lon):
    return {"id": node_id, "latitude": lat, "longitude": lon}


NODES = [
    node("1", 45.7500, 4.8500),
    node("2", 45.7550, 4.8600),
    node("3", 45.7600, 4.8700),
    node("4", 45.7650, 4.8800),
    node("5", 45.7700, 4.8900),
]


def plan_json():
    return {
        "nodes": [dict(n) for n in NODES],
        "segments": [
            {"origin": "1", "destination": "2"},
            {"origin": "2", "destination": "3"},
            {"origin": "3", "destination": "4"},
            {"origin": "4", "destination": "5"},
            {"origin": "5", "destination": "404"},
        ],
    }


def demand_json(demand_id="d1", pickup="2", delivery="4"):
    return {
        "id": demand_id,
        "pickupAddress": pickup,
        "deliveryAddress": delivery,
        "pickupDuration": 300,
        "deliveryDuration": 120,
        "clientName": "Client " + demand_id,
    }


def tour_json(tour_id="t1", departure="08:00"):
    """Warehouse -> pickup -> delivery, with routed legs through node 3."""
    demand = demand_json()
    return {
        "id": tour_id,
        "departureTime": departure,
        "totalDistance": 3450,
        "totalDuration": 1920,
        "courier": {"id": "C1", "name": "Alice"},
        "stops": [
            {"type": "WAREHOUSE", "node": NODES[0], "serviceDuration": 0},
            {"type": "PICKUP", "node": NODES[1], "serviceDuration": 300, "demand": demand},
            {"type": "DELIVERY", "node": NODES[3], "serviceDuration": 120, "demand": demand},
        ],
        "legs": [
            {"pathNode": [NODES[0], NODES[1]], "distance": 1200, "travelTime": 600},
            {"pathNode": [NODES[1], NODES[2], NODES[3]], "distance": 2250, "travelTime": 900},
        ],
    }


def cluster_json(demands, lat=45.76, lon=4.87):
    return {"demands": demands, "centroid": {"lat": lat, "lon": lon}}
