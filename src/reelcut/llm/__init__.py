"""Semantic service integration for reelcut.

Provides cut proposals and SEO metadata on top of an OpenAI-compatible
chat-completions endpoint.
"""

from reelcut.llm.client import ChatRequest, SemanticClient
from reelcut.llm.cuts import CutProposer, parse_cuts
from reelcut.llm.metadata import MetadataGenerator, parse_metadata
from reelcut.llm.prompts import CutPromptBuilder, MetadataPromptBuilder

__all__ = [
    "ChatRequest",
    "SemanticClient",
    "CutProposer",
    "parse_cuts",
    "MetadataGenerator",
    "parse_metadata",
    "CutPromptBuilder",
    "MetadataPromptBuilder",
]
