"""
Server package for the chat relay.

This package contains all server-side functionality including:
- Message storage and history queries
- Presence tracking and outbound delivery
- Event routing and per-connection sessions
- Configuration and utilities
"""
