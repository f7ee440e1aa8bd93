# codesync/logging/tags.py
"""
Subsystem tags prefixed to log messages.

Changing a tag here changes it project-wide.
"""

MERKLE = "[MERKLE]"
DIFF = "[DIFF]"
CHUNKING = "[CHUNKING]"
EMBEDDING = "[EMBEDDING]"
VECTOR_DB = "[VECTOR_DB]"
REPOSITORY = "[REPOSITORY]"
STATE = "[STATE]"
SYNC = "[SYNC]"
WEBHOOK = "[WEBHOOK]"
PROGRESS = "[PROGRESS]"
API = "[API]"
CLI = "[CLI]"
