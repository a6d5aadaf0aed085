"""
SessionLib - Editing session and settings

This module provides the EditorSession context object and the
EditorSettings configuration surface.
"""

from OM_Libs.SessionLib.editor_settings import EditorSettings
from OM_Libs.SessionLib.editor_session import EditorSession

__all__ = [
    "EditorSettings",
    "EditorSession",
]
