"""Host framework integrations.

Available integrations:
- exclusivearc.integrations.orm - SQLAlchemy ORM entity store and flush validation
"""
