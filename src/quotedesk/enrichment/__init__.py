"""LLM and web assisted metadata enrichment."""
