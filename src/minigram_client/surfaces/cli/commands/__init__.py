from .auth import register_auth_commands
from .calls import register_calls_commands
from .chats import register_chats_commands, register_messages_commands
from .config import register_config_commands

__all__ = [
    "register_auth_commands",
    "register_calls_commands",
    "register_chats_commands",
    "register_config_commands",
    "register_messages_commands",
]
