"""
Abstract interfaces for the Voice Memos system.

These interfaces define the contracts that concrete implementations
must adhere to, following the Dependency Inversion Principle.

This package contains:
- Repository interfaces for memo persistence
- Provider interfaces for the database and speech platform adapters
- Service interfaces for the memo cache and speech session components
"""
