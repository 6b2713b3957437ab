"""autoscribe.

An LLM-powered tool that parses JavaScript and TypeScript sources,
generates JSDoc/TSDoc comments for every file and function using the
Anthropic Claude API, and writes them back into the code.
"""

__version__ = "0.1.0"
