"""Entity models and pure date/rule helpers."""
