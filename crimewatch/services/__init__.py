"""
CrimeWatch - Services Package

Side-channel integrations that never block or fail a request.
"""

from crimewatch.services.notifications import EmailNotifier

__all__ = ["EmailNotifier"]
