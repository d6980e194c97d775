"""Database table name constants and type references."""

# Table names used by Supabase queries
CONVERSATIONS = "conversations"
MESSAGES = "messages"

# Sender constants
SENDER_USER = "user"
SENDER_ASSISTANT = "assistant"
