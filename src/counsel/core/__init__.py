"""Agentic loop for Counsel."""

from counsel.core.loop import AgenticLoop, LoopStats, send_agentic_message

__all__ = ["AgenticLoop", "LoopStats", "send_agentic_message"]
