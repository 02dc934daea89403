"""
simpletodo: a minimal personal todo list with checklists.

The FastAPI application is built by `simpletodo.main.create_app`; run it with
`python -m simpletodo` or the `simpletodo` console script.
"""

__version__ = "0.1.0"
