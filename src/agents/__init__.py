"""Literature review agent.

This package implements the two-phase review workflow:
- Search Agent: tool-calling loop that collects papers (agents.search_agent)
- Tool Executor: runs the tools the LLM requests (agents.tools)
- Synthesis Agent: streams the structured review (agents.synthesis_agent)
- Review pipeline: wires both phases to an event channel (agents.review)
- Citation Agent: annotates citation issues in a paper's text (agents.citation_agent)

Submodules are imported directly (e.g. ``from agents.review import
run_literature_review``); services and aggregators depend on
``agents.errors``, so this package does not import its submodules eagerly.
"""
