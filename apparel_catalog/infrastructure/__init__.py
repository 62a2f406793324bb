"""Infrastructure layer - configuration, database, Redis, logging and audit."""
