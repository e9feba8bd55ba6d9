"""SQLAlchemy persistence: table models, mappers and repositories."""
