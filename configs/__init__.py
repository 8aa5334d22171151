"""Deployment profiles for storage backends and the gateway."""
