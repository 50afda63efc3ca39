"""
Configuration file for Scroll Chat
"""

import os

# Server settings
DEFAULT_SERVER = 'localhost'
DEFAULT_PORT = 5000
BUFFER_SIZE = 1024
ENCODING = 'utf-8'

# Scroll window settings
WINDOW_CAPACITY = 25  # Messages kept at the tail during normal chat flow

# Registration settings
MAX_NAME_LENGTH = 20

# Prompts
ADDRESS_PROMPT = "Enter chat server IP and port separated by ':'"
NAME_PROMPT = f"Enter your name ({MAX_NAME_LENGTH} symbols):"
INPUT_PROMPT = "> "

# Logging settings
LOG_FILE = os.environ.get('CHAT_LOG_FILE', 'scroll_chat.log')
LOG_LEVEL = os.environ.get('CHAT_LOG_LEVEL', 'INFO').upper()
