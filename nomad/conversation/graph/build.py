"""
Graph construction for the conversation state machine.

One compiled graph handles one incoming message: a conditional entry point
routes on the conversation state to a single handler node, which then ends
the run.
"""

from functools import partial
from typing import Optional

from langgraph.graph import StateGraph, END

from nomad.conversation.schemas import ConversationTurnState
from nomad.conversation.nodes.handlers import (
    collect_slot_node,
    confirm_node,
    feedback_node,
    generating_node,
    greeting_node,
    modify_node,
)
from nomad.conversation.nodes.routing import route_by_state
from nomad.conversation.prompts.composer import PromptComposer
from nomad.conversation.graph.config import ConversationConfig, DEFAULT_CONFIG


_NODES = {
    "greeting": greeting_node,
    "collect_slot": collect_slot_node,
    "confirm": confirm_node,
    "generating": generating_node,
    "feedback": feedback_node,
    "modify": modify_node,
}


def create_conversation_graph(
    composer: Optional[PromptComposer] = None,
    settings: Optional[ConversationConfig] = None,
):
    """
    Create and compile the per-message conversation graph.

    The graph structure is:
        Entry -> route_by_state
          -> "greeting"     -> END
          -> "collect_slot" -> END
          -> "confirm"      -> END
          -> "generating"   -> END
          -> "feedback"     -> END
          -> "modify"       -> END

    Args:
        composer: Prompt composer shared by the handler nodes
        settings: Optional configuration. Uses DEFAULT_CONFIG if not provided.

    Returns:
        Compiled LangGraph application ready for execution.
    """
    if settings is None:
        settings = DEFAULT_CONFIG
    if composer is None:
        composer = PromptComposer(
            max_destinations=settings.max_destinations,
            max_duration=settings.max_duration,
        )

    graph = StateGraph(ConversationTurnState)

    # Add nodes, each bound to the shared collaborators
    for name, node in _NODES.items():
        graph.add_node(name, partial(node, composer=composer, settings=settings))

    # Conditional entry point - the conversation state picks the handler
    graph.set_conditional_entry_point(
        route_by_state,
        {name: name for name in _NODES},
    )

    # Every handler answers exactly one message
    for name in _NODES:
        graph.add_edge(name, END)

    app = graph.compile()

    return app
