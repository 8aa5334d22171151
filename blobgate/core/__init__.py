"""Storage, configuration and settings shared by the gateway."""
