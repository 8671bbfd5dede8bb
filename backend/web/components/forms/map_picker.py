"""
Map picker field: latitude/longitude inputs with a "use my location" button.

The browser's geolocation fills both inputs (see agriverse.js); a link opens
the picked point on OpenStreetMap for a visual check. Without JavaScript the
coordinates can still be typed in.
"""

from typing import Optional

from ..base import Component

# Geographic centre of Pakistan; shown when nothing is picked yet.
DEFAULT_CENTER = (30.3753, 69.3451)


class MapPickerField(Component):
    def __init__(
        self,
        *,
        lat_name: str = "location_lat",
        lng_name: str = "location_long",
        label: str = "Location",
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> None:
        self.lat_name = lat_name
        self.lng_name = lng_name
        self.label = label
        self.lat = lat
        self.lng = lng

    def osm_link(self) -> str:
        lat, lng = (self.lat, self.lng) if self.lat is not None and self.lng is not None else DEFAULT_CENTER
        zoom = 14 if self.lat is not None else 6
        return f"https://www.openstreetmap.org/?mlat={lat}&mlon={lng}#map={zoom}/{lat}/{lng}"

    def render(self) -> str:
        lat_attrs = self.attributes(
            id=self.lat_name, name=self.lat_name, type="number", step="any", min="-90", max="90",
            value="" if self.lat is None else self.lat, class_="form-input", data_map_lat=True,
        )
        lng_attrs = self.attributes(
            id=self.lng_name, name=self.lng_name, type="number", step="any", min="-180", max="180",
            value="" if self.lng is None else self.lng, class_="form-input", data_map_lng=True,
        )
        return f"""
        <fieldset class="map-picker" data-map-picker>
            <legend class="form-label">{self.escape(self.label)}</legend>
            <div class="map-picker-inputs">
                <label for="{self.escape(self.lat_name)}">Latitude</label>
                <input {lat_attrs}>
                <label for="{self.escape(self.lng_name)}">Longitude</label>
                <input {lng_attrs}>
            </div>
            <div class="map-picker-actions">
                <button type="button" class="btn btn-secondary" data-action="map-locate">Use my location</button>
                <a class="map-picker-preview" href="{self.escape(self.osm_link())}" target="_blank" rel="noopener" data-map-preview>View on map</a>
            </div>
        </fieldset>"""
