"""
DelivHub package initialization.

This package renders delivery tours on an interactive map and a
companion timeline and keeps the two views in sync. Components include
the data model, schedule reconstruction, the Folium map view, the
timeline, stop selection, multi-tour and cluster overlays, the node
picker, and the saved tour store.

Modules:
    models        – Plan, tour, demand and cluster documents as dataclasses.
    schedule      – Arrival/departure times from a departure time and durations.
    visualisation – Folium map view owning every drawn overlay.
    timeline      – Step-by-step timeline of a tour.
    selection     – Single stop highlight shared by map and timeline.
    overlay       – Palette-colored multi-tour and cluster overlays.
    picker        – Node picking mode used to build new demands.
    details       – Schedule table rows and saved tour list items.
    geocode       – Reverse geocoding of stop coordinates via Nominatim.
    storage       – JSON files for saved tours and couriers.
    core          – ``DeliveryMap``, the entry point for UI glue.
    app           – Streamlit page.
"""

__all__ = [
    "models",
    "schedule",
    "visualisation",
    "timeline",
    "selection",
    "overlay",
    "picker",
    "details",
    "geocode",
    "storage",
    "core",
]
