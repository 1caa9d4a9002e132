"""
Map markers for training programs.

`MarkerRenderer` is the small surface the rest of the app relies on, so the
concrete map provider can be swapped. `GeoJSONMarkerRenderer` produces a
FeatureCollection any web map (Bhuvan/OpenLayers, Leaflet) can load.
"""
from collections.abc import Mapping
import enum

STATUS_COLORS = {
    "ongoing": "#22c55e",
    "planned": "#3b82f6",
    "completed": "#6b7280",
    "cancelled": "#ef4444",
}
DEFAULT_COLOR = "#6b7280"

BASE_LAYERS = {
    "satellite": {"name": "Bhuvan Satellite", "layer": "SATELLITE"},
    "street": {"name": "Bhuvan Street", "layer": "STREET"},
}
DEFAULT_BASE_LAYER = "satellite"

# India
DEFAULT_CENTER = {"latitude": 20.5937, "longitude": 78.9629}
DEFAULT_ZOOM = 5

PROPERTY_FIELDS = (
    "id", "title", "description", "status", "training_type", "disaster_types",
    "location_name", "district", "state", "start_date", "end_date",
    "actual_participants", "target_participants",
)


def marker_color(status):
    return STATUS_COLORS.get(status, DEFAULT_COLOR)


def _value(record, field):
    value = record.get(field) if isinstance(record, Mapping) else getattr(record, field, None)
    return value.value if isinstance(value, enum.Enum) else value


class MarkerRenderer:
    """Capability interface for a map marker provider."""

    def render_markers(self, records):
        raise NotImplementedError

    def on_select(self, callback):
        raise NotImplementedError

    def set_base_layer(self, kind):
        raise NotImplementedError

    def select(self, marker_id):
        raise NotImplementedError


class GeoJSONMarkerRenderer(MarkerRenderer):
    def __init__(self, base_layer=DEFAULT_BASE_LAYER):
        self._callbacks = []
        self._records = {}
        self.base_layer = None
        self.set_base_layer(base_layer)

    def set_base_layer(self, kind):
        if kind not in BASE_LAYERS:
            raise ValueError(f"Unknown base layer '{kind}'. Choose from: {', '.join(BASE_LAYERS)}")
        self.base_layer = kind
        return BASE_LAYERS[kind]

    def on_select(self, callback):
        self._callbacks.append(callback)
        return callback

    def feature(self, record):
        latitude = _value(record, "latitude")
        longitude = _value(record, "longitude")
        if latitude is None or longitude is None:
            return None

        status = _value(record, "status")
        properties = {field: _value(record, field) for field in PROPERTY_FIELDS}
        properties["style"] = {
            "fillColor": marker_color(status),
            "fillOpacity": 0.8,
            "strokeColor": "#ffffff",
            "strokeWidth": 2,
            "pointRadius": 8,
        }
        return {
            "type": "Feature",
            "id": properties["id"],
            # GeoJSON positions are [longitude, latitude]
            "geometry": {"type": "Point", "coordinates": [longitude, latitude]},
            "properties": properties,
        }

    def render_markers(self, records):
        """Replace the current markers; records without both coordinates are skipped."""
        self._records = {}
        features = []
        for record in records:
            feature = self.feature(record)
            if feature is None:
                continue
            self._records[feature["id"]] = record
            features.append(feature)

        return {
            "type": "FeatureCollection",
            "features": features,
            "base_layer": self.base_layer,
            "center": DEFAULT_CENTER,
            "zoom": DEFAULT_ZOOM,
            "legend": STATUS_COLORS,
        }

    def select(self, marker_id):
        """Hand the full record behind a marker to every on_select callback."""
        record = self._records.get(marker_id)
        if record is None:
            return None
        for callback in self._callbacks:
            callback(record)
        return record
