"""Runtime plumbing for the DevOps agent router.

Configuration, the error taxonomy shared by agents and collaborators,
logging setup and the command-line entrypoint.
"""

__version__ = "0.4.0"
