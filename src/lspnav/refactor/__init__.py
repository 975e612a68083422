"""
Refactoring support: project models and the move engine.
"""

from src.lspnav.refactor.move import MoveFileOutput, MoveRequest, move_file
from src.lspnav.refactor.project import MoveResult, ProjectModel, create_project_model

__all__ = [
    "MoveFileOutput",
    "MoveRequest",
    "MoveResult",
    "ProjectModel",
    "create_project_model",
    "move_file",
]
