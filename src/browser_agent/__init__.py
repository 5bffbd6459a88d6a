"""LLM-driven browser automation agent."""
