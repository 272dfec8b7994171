"""Prompt templates and builders for the generation pipeline."""

from nomad.generation.prompts.builders import build_city_request, build_metadata_request

__all__ = ["build_city_request", "build_metadata_request"]
