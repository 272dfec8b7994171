"""Stage nodes for the generation graph."""

from nomad.generation.nodes.metadata import build_trip_metadata, metadata_node
from nomad.generation.nodes.city import build_city_itinerary, city_node
from nomad.generation.nodes.combine import combine_node
from nomad.generation.nodes.router import route_next_stage

__all__ = [
    "build_trip_metadata",
    "metadata_node",
    "build_city_itinerary",
    "city_node",
    "combine_node",
    "route_next_stage",
]
