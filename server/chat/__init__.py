"""
Chat module for server-side messaging functionality.

Handles:
- Message storage and read receipts
- User presence tracking
- Event routing
- Connection sessions
"""
