"""Domain layer: models, ports and the remote-data reconciliation core."""
