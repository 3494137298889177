"""Application layer: settings, services and the command line facade."""
