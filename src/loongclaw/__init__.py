"""
LoongClaw — a conversational command-line agent with a safety-gated tool belt.

The model can read and write files inside the workspace, list
directories, run single shell commands and read the clock. Every call
goes through the SafeToolRouter: parameter checks, path sandboxing, and
a green/white/gray/black command policy with remembered approvals.

Usage:
    from loongclaw.config import load_settings
    from loongclaw.tools import create_tool_router

    router = create_tool_router(load_settings())
    entries = await router.call("list_directory", {"path": "."})
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
