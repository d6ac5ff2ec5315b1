"""Core translation flow and its data model.

WHY: The orchestration (validate → fetch → translate → dedup → post) is
the only real logic in the project. Keeping it apart from Slack and
OpenAI specifics lets the tests drive it with in-memory fakes.

HOW: models.py defines the per-invocation dataclasses, flow.py defines
the MessageStore / Translator protocols and run_translation().

RULES:
- No network or SDK imports in this package
- Capabilities are injected; nothing is read from global state
"""
