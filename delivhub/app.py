"""
Streamlit application for DelivHub tour viewing.

This script defines the user interface around ``DeliveryMap``: load a
road network plan, show a tour (uploaded or picked from the saved tour
history) on the map with its timeline and schedule table, compare several
tours or demand clusters, and add demands by picking their pickup and
delivery nodes on the map.

To run this app locally for development, install the package and
execute:

    streamlit run delivhub/app.py

Saved tours and couriers live under the directory named by the
``DATA_ROOT`` secret (``data`` by default). Setting ``GEOCODE_ADDRESSES``
to true shows street addresses in the timeline instead of coordinates.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import streamlit as st
from streamlit_folium import st_folium

from delivhub.core import DeliveryMap
from delivhub.geocode import short_address
from delivhub.models import Node
from delivhub.picker import PickerKind
from delivhub.storage import TourNotFoundError, TourStore

logger = logging.getLogger(__name__)


def get_store() -> TourStore:
    if "store" not in st.session_state:
        st.session_state["store"] = TourStore(st.secrets.get("DATA_ROOT", "data"))
    return st.session_state["store"]


def get_core() -> DeliveryMap:
    """Return the page's ``DeliveryMap``, kept across reruns."""
    if "core" not in st.session_state:
        lookup = short_address if st.secrets.get("GEOCODE_ADDRESSES", False) else None
        st.session_state["core"] = DeliveryMap(mount="map", address_lookup=lookup)
        st.session_state["demands"] = []
        st.session_state["picked"] = {}
        st.session_state["picking"] = None
        st.session_state["last_click"] = None
        st.session_state["map_key"] = 0
    return st.session_state["core"]


def read_upload(upload) -> Optional[Any]:
    """Decode an uploaded JSON file, reporting errors on the page."""
    if upload is None:
        return None
    try:
        return json.loads(upload.getvalue().decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        st.error(f"{upload.name} is not valid JSON: {exc}")
        return None


def read_click(result: Optional[Dict[str, Any]], last_click: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Extract a new click from the ``st_folium`` result.

    The component keeps reporting its last click on every rerun, so a click
    equal to ``last_click`` is not new.
    """
    result = result or {}
    click = {
        "last_object_clicked_tooltip": result.get("last_object_clicked_tooltip"),
        "last_object_clicked": result.get("last_object_clicked"),
    }
    if not any(click.values()) or click == last_click:
        return None
    return click


def on_node_picked(node: Node) -> None:
    kind = st.session_state.get("picking")
    if kind is None:
        return
    st.session_state["picked"][kind] = node


def sidebar(core: DeliveryMap, store: TourStore) -> None:
    st.sidebar.header("Data")
    plan_json = read_upload(st.sidebar.file_uploader("Plan (nodes and segments)", type="json", key="plan_file"))
    if plan_json is not None and st.sidebar.button("Load plan"):
        if core.load_plan(plan_json) is None:
            st.sidebar.error("The plan could not be read.")

    tour_json = read_upload(st.sidebar.file_uploader("Tour", type="json", key="tour_file"))
    if tour_json is not None:
        col_show, col_save = st.sidebar.columns(2)
        with col_show:
            if st.button("Show tour"):
                core.render_tour(tour_json)
        with col_save:
            if st.button("Save tour"):
                saved = store.save_tour(tour_json)
                st.sidebar.success(f"Tour saved: {saved['filename']}")

    tours_json = read_upload(st.sidebar.file_uploader("Several tours", type="json", key="tours_file"))
    if isinstance(tours_json, list) and st.sidebar.button("Compare tours"):
        colors = core.render_tours(tours_json)
        st.session_state["legend"] = colors

    clusters_json = read_upload(st.sidebar.file_uploader("Clusters", type="json", key="clusters_file"))
    if isinstance(clusters_json, list) and st.sidebar.button("Show clusters"):
        if core.plan is None:
            st.sidebar.error("Load a plan first.")
        else:
            st.session_state["legend"] = core.render_clusters(clusters_json)

    st.sidebar.header("Couriers")
    with st.sidebar.form("courier_form", clear_on_submit=True):
        name = st.text_input("Courier name")
        if st.form_submit_button("Add courier"):
            try:
                store.save_courier(name)
            except ValueError as exc:
                st.error(str(exc))
    for courier in store.list_couriers():
        st.sidebar.caption(f"{courier.get('id')} · {courier.get('name')}")


def history(core: DeliveryMap, store: TourStore) -> None:
    st.subheader("Saved tours")

    def open_tour(record) -> None:
        try:
            core.render_tour(store.load_tour(record.tour_id or record.filename.removesuffix(".json")))
        except TourNotFoundError as exc:
            st.error(str(exc))

    items = core.render_history_list(store.list_tours(), open_tour)
    if not items:
        st.caption("No saved tours found.")
    for i, item in enumerate(items):
        if st.button(f"{item.title}  \n{item.meta}", key=f"history_{i}", use_container_width=True):
            item.select()


def timeline(core: DeliveryMap) -> None:
    if not core.timeline.visible:
        return
    st.caption(core.tour_summary())
    steps = core.timeline.steps
    columns = st.columns(max(len(steps), 1))
    for step, column in zip(steps, columns):
        with column:
            label = f"{step.badge}\n\n{step.time}"
            kind = "primary" if step.selected else "secondary"
            if st.button(label, key=f"step_{step.index}", help=step.description, type=kind):
                core.select_stop(step.index)
                st.rerun()
    st.table([row.as_dict() for row in core.tour_details()])


def demand_form(core: DeliveryMap) -> None:
    st.subheader("Add a demand")
    picked: Dict[str, Node] = st.session_state["picked"]
    col_pickup, col_delivery = st.columns(2)
    for column, kind in ((col_pickup, PickerKind.PICKUP), (col_delivery, PickerKind.DELIVERY)):
        with column:
            node = picked.get(kind.value)
            if node is not None:
                st.text(f"Point {node.id} ({node.latitude:.4f}, {node.longitude:.4f})")
            if st.button(f"Select {kind.value.lower()} on the map", key=f"pick_{kind.value}"):
                st.session_state["picking"] = kind.value
                core.set_node_picker_mode(True, kind, on_node_picked)
                st.rerun()

    with st.form("demand_form"):
        client = st.text_input("Client")
        pickup_minutes = st.number_input("Pickup duration (min)", min_value=0, value=5)
        delivery_minutes = st.number_input("Delivery duration (min)", min_value=0, value=5)
        if st.form_submit_button("Add"):
            pickup, delivery = picked.get("PICKUP"), picked.get("DELIVERY")
            if pickup is None or delivery is None:
                st.error("Pick both a pickup and a delivery node first.")
            else:
                demands: List[Dict[str, Any]] = st.session_state["demands"]
                demands.append(
                    {
                        "id": f"D{len(demands) + 1}",
                        "pickupAddress": pickup.id,
                        "deliveryAddress": delivery.id,
                        "pickupDuration": int(pickup_minutes) * 60,
                        "deliveryDuration": int(delivery_minutes) * 60,
                        "clientName": client,
                    }
                )
                st.session_state["picked"] = {}
                core.set_node_picker_mode(False)
                core.render_demands(demands)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    st.set_page_config(page_title="DelivHub", layout="wide")
    st.title("🚚 DelivHub tours")
    core = get_core()
    store = get_store()
    sidebar(core, store)

    col_map, col_side = st.columns([3, 1])
    with col_map:
        result = st_folium(core.map, width=None, height=600, key=f"map_{st.session_state['map_key']}")
        click = read_click(result, st.session_state["last_click"])
        if click is not None:
            st.session_state["last_click"] = click
            handled = core.handle_map_click(click)
            if handled is not None:
                # A remounted map component starts without a click.
                st.session_state["map_key"] += 1
                st.session_state["last_click"] = None
                if core.picker.active and all(k in st.session_state["picked"] for k in ("PICKUP", "DELIVERY")):
                    core.set_node_picker_mode(False)
                    st.session_state["picking"] = None
                st.rerun()
        legend = st.session_state.get("legend")
        if legend and not core.timeline.visible:
            st.markdown(
                " ".join(f'<span style="color:{c}">●</span> {i + 1}' for i, c in enumerate(legend)),
                unsafe_allow_html=True,
            )
        timeline(core)
    with col_side:
        history(core, store)
        demand_form(core)


if __name__ == "__main__":
    main()
