"""Graph configuration for the generation pipeline. Construction lives in graph.build."""

from nomad.generation.graph.config import GenerationConfig, DEFAULT_CONFIG, get_config

__all__ = ["GenerationConfig", "DEFAULT_CONFIG", "get_config"]
