"""Qt host adapter for exam sessions."""

from .session_controller import SessionController, message_box_confirm

__all__ = ["SessionController", "message_box_confirm"]
