"""
Pipeline coordination for Meeting Reporter.

Submodules:
- ``context``: typed shared context and stage views
- ``events``: agent event bus
- ``orchestrator``: three-stage report pipeline and command routing
"""
