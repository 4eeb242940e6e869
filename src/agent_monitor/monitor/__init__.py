"""
Monitoring cycle.

Components:
- agent_monitor.py: AgentMonitor, the two-phase cycle under the run lock
- signatures.py: recognising the agent's own replies and follow-up intents
- titles.py: descriptive task titles after handling
"""
