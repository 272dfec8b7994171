"""
Generation graph construction.

Builds the graph that sequences metadata -> city (once per destination)
-> combine. Every stage hands control back to route_next_stage, which
picks the next one from what the state already holds.
"""

from langgraph.graph import StateGraph, END

from nomad.generation.schemas import GenerationState
from nomad.generation.nodes.router import route_next_stage
from nomad.generation.nodes.metadata import metadata_node
from nomad.generation.nodes.city import city_node
from nomad.generation.nodes.combine import combine_node


_ROUTES = {
    "metadata_node": "metadata_node",
    "city_node": "city_node",
    "combine_node": "combine_node",
}


def create_generation_graph():
    """
    Create and compile the generation graph.

    The graph structure is:
        Entry -> route_next_stage
          -> "metadata_node" -> metadata_node -> route_next_stage
          -> "city_node"     -> city_node     -> route_next_stage (loops per city)
          -> "combine_node"  -> combine_node  -> END

    Returns:
        Compiled LangGraph application; run it with ainvoke.
    """
    graph = StateGraph(GenerationState)

    # Add nodes
    graph.add_node("metadata_node", metadata_node)
    graph.add_node("city_node", city_node)
    graph.add_node("combine_node", combine_node)

    # Conditional entry point - start from wherever state requires
    graph.set_conditional_entry_point(route_next_stage, _ROUTES)

    # After metadata and after each city, route again
    graph.add_conditional_edges("metadata_node", route_next_stage, _ROUTES)
    graph.add_conditional_edges("city_node", route_next_stage, _ROUTES)

    # Combine -> END
    graph.add_edge("combine_node", END)

    app = graph.compile()

    return app
