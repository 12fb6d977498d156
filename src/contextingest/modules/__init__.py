"""Pipeline stage strategies, connectors and presenters."""
