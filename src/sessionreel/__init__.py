"""
SessionReel - Timeline, tool call and replay views for recorded agent sessions.

SessionReel turns the raw event log of an agent session into what a session
viewer shows. It provides:
- A normalized display timeline (tool start/result pairs collapsed)
- Reconciled tool call records with durations and error status
- Aggregate tool call statistics
- A seekable, variable-speed playback clock

Example usage:
    $ sessionreel timeline session.json
    $ sessionreel tools session.json --tool Read
    $ sessionreel replay session.json --speed 4
"""

__version__ = "0.1.0"
__author__ = "SessionReel Contributors"

__all__ = [
    "__version__",
    "__author__",
]
