"""
Core subsystem.

Components:
- models.py: data structures (Task, Comment, WorkItem, results, enums)
- ports.py: Protocols the engine depends on (tracker, LLM, ledger, workflows)
- state.py: MonitorState, the container wiring concrete collaborators together
- errors.py: the few exceptions that are allowed to propagate
"""
